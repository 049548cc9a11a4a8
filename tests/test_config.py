"""Configuration resource tests."""
import pytest

from docsentinel.config import (
    Configurator,
    SentinelSettings,
    get_config_dir,
    load_config,
    resolve_resource,
)
from docsentinel.errors import ConfigurationError


@pytest.fixture
def resource(tmp_path):
    path = tmp_path / "agent_protocol.yaml"
    path.write_text(
        "ENABLED: true\n"
        "ACTION: Notify\n"
        "RULE_ID:\n"
        "  - LONG_RUNNING\n"
        "  - TOO_MANY\n"
        "LONG_RUNNING_PLACE_MATCHER: thePlace\n"
        "LONG_RUNNING_TIME_LIMIT_MINUTES: 60L\n"
        "TOO_MANY_PLACE_MATCHER: To.*Place\n"
        "TOO_MANY_PLACE_THRESHOLD: 0.5\n"
    )
    return path


class TestLoadConfig:
    def test_missing(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("ENABLED: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == {}


class TestResolve:
    def test_relative_to_config_dir(self, tmp_path):
        assert resolve_resource("sentinel.yaml", tmp_path) == tmp_path / "sentinel.yaml"

    def test_absolute(self, tmp_path):
        path = tmp_path / "elsewhere.yaml"
        assert resolve_resource(str(path), tmp_path / "conf") == path

    def test_config_dir_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DOCSENTINEL_CONFIG_DIR", str(tmp_path))
        assert get_config_dir() == tmp_path


class TestConfigurator:
    def test_from_resource(self, resource):
        config = Configurator.from_resource(resource.name, resource.parent)
        assert config.find_boolean_entry("ENABLED") is True
        assert config.find_string_entry("ACTION") == "Notify"
        assert config.find_entries("RULE_ID") == ["LONG_RUNNING", "TOO_MANY"]
        assert config.name == str(resource)

    def test_match_map(self, resource):
        config = Configurator.from_resource(resource)
        assert config.find_string_match_map("LONG_RUNNING_") == {
            "PLACE_MATCHER": "thePlace",
            "TIME_LIMIT_MINUTES": "60L",
        }
        assert config.find_string_match_map("TOO_MANY_") == {
            "PLACE_MATCHER": "To.*Place",
            "PLACE_THRESHOLD": "0.5",
        }

    def test_defaults(self):
        config = Configurator()
        assert config.find_string_entry("ACTION", "Notify") == "Notify"
        assert config.find_boolean_entry("ENABLED", True) is True
        assert config.find_int_entry("POLLING_INTERVAL_MINUTES", 5) == 5
        assert config.find_entries("RULE_ID") == []

    def test_boolean_strings(self):
        config = Configurator({"A": "true", "B": "False", "C": "yes", "D": "0"})
        assert [config.find_boolean_entry(k) for k in "ABCD"] == [True, False, True, False]

    def test_invalid_int_uses_default(self):
        assert Configurator({"N": "five"}).find_int_entry("N", 5) == 5

    def test_add_entry(self):
        config = Configurator({"RULE_ID": "ONE"})
        config.add_entry("RULE_ID", "TWO")
        assert config.find_entries("RULE_ID") == ["ONE", "TWO"]
        assert config.keys() == ["RULE_ID"]

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DOCSENTINEL_ENABLED", "false")
        config = Configurator({"ENABLED": True}, env_override=True)
        assert config.find_boolean_entry("ENABLED") is False

    def test_env_ignored_without_override(self, monkeypatch):
        monkeypatch.setenv("DOCSENTINEL_ENABLED", "true")
        monkeypatch.setenv("DOCSENTINEL_PROTOCOL", "agent_protocol.yaml")
        config = Configurator({"ENABLED": False, "PROTOCOL": "AgentProtocol"})
        assert config.find_boolean_entry("ENABLED") is False
        assert config.find_string_entry("PROTOCOL") == "AgentProtocol"

    def test_env_override_from_resource(self, monkeypatch, resource):
        monkeypatch.setenv("DOCSENTINEL_ACTION", "Kill")
        assert Configurator.from_resource(resource).find_string_entry("ACTION") == "Notify"
        overridden = Configurator.from_resource(resource, env_override=True)
        assert overridden.find_string_entry("ACTION") == "Kill"


class TestSentinelSettings:
    def test_defaults(self):
        settings = SentinelSettings.from_config(Configurator())
        assert settings.enabled is False
        assert settings.polling_interval_minutes == 5
        assert settings.protocols == []

    def test_values(self):
        config = Configurator(
            {"ENABLED": True, "POLLING_INTERVAL_MINUTES": 2, "PROTOCOL": ["a.yaml", "b.yaml"]}
        )
        settings = SentinelSettings.from_config(config)
        assert settings.enabled is True
        assert settings.polling_interval_minutes == 2
        assert settings.protocols == ["a.yaml", "b.yaml"]

    @pytest.mark.parametrize("interval", [0, -1, "soon"])
    def test_invalid_interval(self, interval):
        with pytest.raises(ConfigurationError):
            SentinelSettings.from_config(Configurator({"POLLING_INTERVAL_MINUTES": interval}))

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DOCSENTINEL_POLLING_INTERVAL_MINUTES", "7")
        settings = SentinelSettings.from_config(
            Configurator({"POLLING_INTERVAL_MINUTES": 2}, env_override=True)
        )
        assert settings.polling_interval_minutes == 7
