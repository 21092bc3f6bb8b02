"""
Tests for loading event definition files and settings.
"""

import json

import pytest

from journal_watcher.config.loader import load_definitions, load_raw_definitions
from journal_watcher.config.settings import ApplicationSettings, ServerSettings
from journal_watcher.errors import ConfigError
from journal_watcher.patterns.compiler import RawEventDefinition

YAML_DOCUMENT = """
- event: service_started
  pattern: "Started .*"
  attribute_patterns:
    unit: "Started (.*)\\\\.$"
- event: oom_kill
  pattern: "Out of memory"
"""


class TestDefinitionLoader:
    """Test reading JSON and YAML definition files."""

    @pytest.mark.parametrize("suffix", [".yaml", ".yml"])
    def test_load_yaml(self, tmp_path, suffix):
        path = tmp_path / f"patterns{suffix}"
        path.write_text(YAML_DOCUMENT)

        raw = load_raw_definitions(path)

        assert raw == [
            RawEventDefinition("service_started", "Started .*", {"unit": "Started (.*)\\.$"}),
            RawEventDefinition("oom_kill", "Out of memory", {}),
        ]

    def test_load_json(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(
            json.dumps(
                [{"event": "restart", "pattern": "Started", "attribute_patterns": {"u": "(\\w+)"}}]
            )
        )

        [definition] = load_definitions(path)

        assert definition.name == "restart"
        assert definition.extract_attributes("Started nginx") == {"u": "Started"}

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "patterns.toml"
        path.write_text("")

        with pytest.raises(ConfigError, match=".json or .yaml"):
            load_raw_definitions(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_raw_definitions(tmp_path / "missing.yaml")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text("[{")

        with pytest.raises(ConfigError):
            load_raw_definitions(path)

    def test_document_must_be_a_list(self, tmp_path):
        path = tmp_path / "patterns.yaml"
        path.write_text("event: x\npattern: y\n")

        with pytest.raises(ConfigError, match="list"):
            load_raw_definitions(path)

    def test_record_requires_event_and_pattern(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps([{"event": "x"}]))

        with pytest.raises(ConfigError):
            load_raw_definitions(path)

    def test_attribute_patterns_must_be_strings(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps([{"event": "x", "pattern": "y", "attribute_patterns": {"a": 1}}]))

        with pytest.raises(ConfigError) as exc_info:
            load_raw_definitions(path)
        assert exc_info.value.event == "x"

    def test_uncompileable_pattern(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps([{"event": "x", "pattern": "(", "attribute_patterns": {}}]))

        with pytest.raises(ConfigError) as exc_info:
            load_definitions(path)
        assert exc_info.value.event == "x"


class TestSettings:
    """Test environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for name in ("WATCHER_HOST", "WATCHER_PORT", "WATCHER_DB_PATH", "WATCHER_QUERY_LOCK_TIMEOUT"):
            monkeypatch.delenv(name, raising=False)

        settings = ApplicationSettings.from_env()

        assert settings.server.host == "localhost"
        assert settings.server.port == 6767
        assert settings.server.query_lock_timeout is None
        assert settings.database.path.endswith("events.db")
        settings.validate()

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WATCHER_PORT", "8080")
        monkeypatch.setenv("WATCHER_DB_PATH", str(tmp_path / "db.sqlite"))
        monkeypatch.setenv("WATCHER_QUERY_LOCK_TIMEOUT", "2.5")

        settings = ApplicationSettings.from_env()

        assert settings.server.port == 8080
        assert settings.server.query_lock_timeout == 2.5
        assert settings.database.path == str(tmp_path / "db.sqlite")

    def test_invalid_port_in_env(self, monkeypatch):
        monkeypatch.setenv("WATCHER_PORT", "not-a-port")

        with pytest.raises(ConfigError):
            ServerSettings.from_env()

    def test_validate_rejects_bad_values(self, monkeypatch):
        monkeypatch.delenv("WATCHER_PORT", raising=False)
        settings = ApplicationSettings.from_env()
        settings.server.port = 70000
        settings.server.query_lock_timeout = 0

        with pytest.raises(ConfigError) as exc_info:
            settings.validate()
        assert "port" in str(exc_info.value)
        assert "timeout" in str(exc_info.value)
