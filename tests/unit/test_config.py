import pytest

from stackwrapper import config


class TestEnvParsing:
    @pytest.mark.parametrize(
        "value,expected", [("1", True), ("true", True), ("0", False), ("False", False), ("", None)]
    )
    def test_parse_boolean_env(self, monkeypatch, value, expected):
        monkeypatch.setenv("SW_TEST_FLAG", value)
        assert config.parse_boolean_env("SW_TEST_FLAG") is expected

    def test_is_env_true(self, monkeypatch):
        monkeypatch.setenv("SW_TEST_FLAG", "1")
        assert config.is_env_true("SW_TEST_FLAG")
        assert config.is_env_not_false("SW_TEST_FLAG")

        monkeypatch.setenv("SW_TEST_FLAG", "")
        assert not config.is_env_true("SW_TEST_FLAG")
        assert config.is_env_not_false("SW_TEST_FLAG")

        monkeypatch.setenv("SW_TEST_FLAG", "false")
        assert not config.is_env_not_false("SW_TEST_FLAG")

    @pytest.mark.parametrize("value,expected", [("5", 5), ("0.5", 0.5), ("", 10), ("soon", 10)])
    def test_parse_number_env(self, monkeypatch, value, expected):
        monkeypatch.setenv("SW_TEST_NUMBER", value)
        assert config.parse_number_env("SW_TEST_NUMBER", 10) == expected

    def test_parse_unset_number_env(self, monkeypatch):
        monkeypatch.delenv("SW_TEST_NUMBER", raising=False)
        assert config.parse_number_env("SW_TEST_NUMBER", 3) == 3

    @pytest.mark.parametrize("value,expected", [("debug", "debug"), ("TRACE", "trace"), ("loud", False)])
    def test_eval_log_type(self, monkeypatch, value, expected):
        monkeypatch.setenv("SW_LOG", value)
        assert config.eval_log_type("SW_LOG") == expected


class TestProfiles:
    @pytest.fixture
    def config_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "CONFIG_DIR", str(tmp_path))
        (tmp_path / "default.env").write_text("STACK_POLL_INTERVAL=1\nSHARED=default\n")
        (tmp_path / "ci.env").write_text("DEFAULT_REGION=eu-west-1\nSHARED=ci\n")
        (tmp_path / "other.env").write_text("SHARED=other\n")
        return tmp_path

    def test_load_default_profile(self, config_dir):
        env = {}

        assert config.load_environment(env=env) == ["default"]
        assert env == {"STACK_POLL_INTERVAL": "1", "SHARED": "default"}

    def test_later_profiles_win(self, config_dir):
        env = {}

        assert config.load_environment("ci,other", env=env) == ["ci", "other"]
        assert env == {"DEFAULT_REGION": "eu-west-1", "SHARED": "other"}

    def test_environment_is_not_overridden(self, config_dir):
        env = {"SHARED": "explicit"}

        config.load_environment("ci", env=env)

        assert env["SHARED"] == "explicit"
        assert env["DEFAULT_REGION"] == "eu-west-1"

    def test_missing_profile_is_ignored(self, config_dir):
        env = {}

        config.load_environment("missing", env=env)

        assert env == {}


def test_collect_config_items(monkeypatch):
    monkeypatch.setattr(config, "STACK_OUTPUT_FILE", "outputs.properties")

    items = dict(config.collect_config_items())

    assert items["STACK_OUTPUT_FILE"] == "outputs.properties"
    assert set(items) == set(config.CONFIG_ENV_VARS)
    assert [key for key, _ in config.collect_config_items()] == sorted(config.CONFIG_ENV_VARS)
