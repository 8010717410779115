import pytest

from stackwrapper.utils.files import (
    escape_property,
    format_properties,
    load_file,
    save_file,
    write_properties,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("plain", "plain"),
        ("http://example.com", "http\\://example.com"),
        ("a=b", "a\\=b"),
        ("#hash!", "\\#hash\\!"),
        ("C:\\dir", "C\\:\\\\dir"),
        ("two\nlines", "two\\nlines"),
        (" leading", "\\ leading"),
        ("inner space", "inner space"),
        ("caf\u00e9", "caf\\u00e9"),
    ],
)
def test_escape_property_value(value, expected):
    assert escape_property(value) == expected


def test_escape_property_key():
    assert escape_property("my key", is_key=True) == "my\\ key"


def test_format_properties():
    content = format_properties({"demo_Url": "http://x", "demo_stack_id": "id-1"}, "AWS properties")

    lines = content.splitlines()
    assert lines[0] == "#AWS properties"
    assert lines[1].startswith("#")
    assert lines[2:] == ["demo_Url=http\\://x", "demo_stack_id=id-1"]
    assert content.endswith("\n")


def test_write_properties(tmp_path):
    path = str(tmp_path / "out" / "aws_stack_output.properties")

    assert write_properties(path, {"a": "1"}, comment="AWS properties") == path

    content = load_file(path)
    assert content.startswith("#AWS properties\n")
    assert content.endswith("a=1\n")


def test_write_properties_replaces_content(tmp_path):
    path = str(tmp_path / "out.properties")
    save_file(path, "old=1\n")

    write_properties(path, {"new": "2"})

    content = load_file(path)
    assert "old=1" not in content
    assert "new=2" in content


def test_load_missing_file(tmp_path):
    assert load_file(str(tmp_path / "missing")) is None
    assert load_file(str(tmp_path / "missing"), default="") == ""
