import os
import sys

import pytest

from stackwrapper.cli.profiles import parse_profile_argument, set_profile_from_sys_argv


def profile_test(monkeypatch, input_args, expected_profile):
    monkeypatch.setattr(sys, "argv", input_args)
    monkeypatch.setenv("CONFIG_PROFILE", "")
    set_profile_from_sys_argv()
    assert os.environ["CONFIG_PROFILE"] == expected_profile


def test_profiles_equals_notation(monkeypatch):
    profile_test(monkeypatch, ["stackwrapper", "--profile=ci", "create"], "ci")


def test_profiles_separate_args_notation(monkeypatch):
    profile_test(monkeypatch, ["stackwrapper", "--profile", "ci", "create"], "ci")


def test_p_separate_args_notation(monkeypatch):
    profile_test(monkeypatch, ["stackwrapper", "-p", "ci", "create"], "ci")


def test_no_profile(monkeypatch):
    profile_test(monkeypatch, ["stackwrapper", "create", "-f", "job.yml"], "")


@pytest.mark.parametrize(
    "args,expected",
    [
        (["--profile"], None),
        (["--profile=a,b"], "a,b"),
        (["wrap", "-f", "job.yml", "--", "deploy", "--profile", "prod"], None),
        (["--profile", "ci", "wrap", "--", "deploy", "--profile", "prod"], "ci"),
    ],
)
def test_parse_profile_argument(args, expected):
    assert parse_profile_argument(args) == expected
