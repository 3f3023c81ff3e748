"""Unit tests for relay configuration loading."""

import configparser
import logging
from unittest.mock import patch

import pytest

from translation_relay import config as config_module
from translation_relay.config import (
    LoggingSettings,
    RelayConfig,
    _apply_env_overrides,
    _load_from_ini,
    configure_logging,
    get_config_status,
    parse_endpoint_list,
)

_ENV_VARS = (
    "RELAY_ENDPOINTS",
    "RELAY_TIMEOUT_SECONDS",
    "RELAY_THROTTLE_MS",
    "RELAY_FAIL_THRESHOLD",
    "RELAY_CACHE_ENABLED",
    "RELAY_CACHE_PATH",
    "RELAY_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.mark.unit
class TestParseEndpointList:
    def test_comma_separated(self):
        assert parse_endpoint_list("https://a,https://b") == ["https://a", "https://b"]

    def test_mixed_separators(self):
        assert parse_endpoint_list(" https://a ,\n https://b  https://c ") == [
            "https://a",
            "https://b",
            "https://c",
        ]

    def test_duplicates_and_order_kept(self):
        assert parse_endpoint_list("https://b,https://a,https://b") == [
            "https://b",
            "https://a",
            "https://b",
        ]

    @pytest.mark.parametrize("value", [None, "", "   ", ",,"])
    def test_empty_values(self, value):
        assert parse_endpoint_list(value) == []


@pytest.mark.unit
class TestDefaults:
    def test_builtin_defaults(self):
        cfg = RelayConfig()
        assert cfg.endpoints.urls == []
        assert cfg.dispatch.timeout_seconds == 15.0
        assert cfg.dispatch.throttle_ms == 300
        assert cfg.dispatch.fail_threshold == 2
        assert cfg.cache.namespace_key == "tranCache"
        assert cfg.feed.endpoints_field == "gasEndpoints"

    def test_timeout_property(self):
        cfg = RelayConfig()
        assert cfg.timeout == 15.0
        cfg.dispatch.timeout_seconds = 0
        assert cfg.timeout is None

    def test_relative_cache_path_resolves_under_project_root(self):
        cfg = RelayConfig()
        assert cfg.cache.absolute_path == config_module.PROJECT_ROOT / "data/relay_storage.json"

    def test_absolute_cache_path_kept(self, tmp_path):
        cfg = RelayConfig()
        cfg.cache.path = str(tmp_path / "s.json")
        assert cfg.cache.absolute_path == tmp_path / "s.json"


@pytest.mark.unit
class TestIniLoading:
    def test_all_sections(self):
        parser = configparser.ConfigParser()
        parser.read_dict(
            {
                "endpoints": {"urls": "https://a, https://b"},
                "dispatch": {"timeout_seconds": "7.5", "throttle_ms": "50", "fail_threshold": "4"},
                "cache": {"enabled": "no", "path": "/tmp/x.json", "namespace_key": "k"},
                "feed": {"endpoints_field": "urls"},
                "logging": {"level": "debug", "format": "JSON"},
            }
        )
        cfg = RelayConfig()

        _load_from_ini(parser, cfg)

        assert cfg.endpoints.urls == ["https://a", "https://b"]
        assert cfg.dispatch.timeout_seconds == 7.5
        assert cfg.dispatch.throttle_ms == 50
        assert cfg.dispatch.fail_threshold == 4
        assert cfg.cache.enabled is False
        assert cfg.cache.path == "/tmp/x.json"
        assert cfg.cache.namespace_key == "k"
        assert cfg.feed.endpoints_field == "urls"
        assert cfg.logging.level == "DEBUG"
        assert cfg.logging.format == "json"

    def test_unknown_log_format_ignored(self):
        parser = configparser.ConfigParser()
        parser.read_dict({"logging": {"format": "xml"}})
        cfg = RelayConfig()
        _load_from_ini(parser, cfg)
        assert cfg.logging.format == "detailed"

    def test_missing_sections_keep_defaults(self):
        cfg = RelayConfig()
        _load_from_ini(configparser.ConfigParser(), cfg)
        assert cfg == RelayConfig()


@pytest.mark.unit
class TestEnvOverrides:
    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("RELAY_ENDPOINTS", "https://x https://y")
        monkeypatch.setenv("RELAY_TIMEOUT_SECONDS", "0")
        monkeypatch.setenv("RELAY_THROTTLE_MS", "10")
        monkeypatch.setenv("RELAY_FAIL_THRESHOLD", "5")
        monkeypatch.setenv("RELAY_CACHE_ENABLED", "false")
        monkeypatch.setenv("RELAY_CACHE_PATH", "/tmp/relay.json")
        monkeypatch.setenv("RELAY_LOG_LEVEL", "warning")
        cfg = RelayConfig()

        _apply_env_overrides(cfg)

        assert cfg.endpoints.urls == ["https://x", "https://y"]
        assert cfg.timeout is None
        assert cfg.dispatch.throttle_ms == 10
        assert cfg.dispatch.fail_threshold == 5
        assert cfg.cache.enabled is False
        assert cfg.cache.path == "/tmp/relay.json"
        assert cfg.logging.level == "WARNING"

    def test_empty_endpoint_variable_clears_list(self, monkeypatch):
        monkeypatch.setenv("RELAY_ENDPOINTS", "")
        cfg = RelayConfig()
        cfg.endpoints.urls = ["https://from-ini"]
        _apply_env_overrides(cfg)
        assert cfg.endpoints.urls == []

    def test_unset_variables_leave_values(self):
        cfg = RelayConfig()
        cfg.endpoints.urls = ["https://from-ini"]
        _apply_env_overrides(cfg)
        assert cfg.endpoints.urls == ["https://from-ini"]


@pytest.mark.unit
class TestReload:
    def test_reload_replaces_singleton(self, monkeypatch):
        original = config_module.config
        monkeypatch.setenv("RELAY_ENDPOINTS", "https://reloaded")
        try:
            reloaded = config_module.reload_config()
            assert config_module.config is reloaded
            assert reloaded.endpoints.urls == ["https://reloaded"]
        finally:
            config_module.config = original

    def test_status_reports_endpoint_count(self, monkeypatch):
        cfg = RelayConfig()
        cfg.endpoints.urls = ["https://a", "https://b"]
        monkeypatch.setattr(config_module, "config", cfg)
        status = get_config_status()
        assert status["endpoint_count"] == 2
        assert status["cache_enabled"] is True
        assert status["timeout_seconds"] == 15.0


@pytest.mark.unit
class TestConfigureLogging:
    @pytest.mark.parametrize(
        ("fmt", "formatter_type"),
        [("json", config_module._JsonFormatter), ("simple", logging.Formatter)],
    )
    def test_installs_handler(self, fmt, formatter_type):
        with patch("translation_relay.config.logging.basicConfig") as basic_config:
            configure_logging(LoggingSettings(level="DEBUG", format=fmt))

        kwargs = basic_config.call_args.kwargs
        assert kwargs["level"] == "DEBUG"
        assert kwargs["force"] is True
        assert isinstance(kwargs["handlers"][0].formatter, formatter_type)

    def test_json_formatter_output(self):
        record = logging.LogRecord("relay", logging.INFO, __file__, 1, "hi %s", ("there",), None)
        line = config_module._JsonFormatter().format(record)
        assert '"message": "hi there"' in line
        assert '"level": "INFO"' in line
