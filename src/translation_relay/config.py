"""
Relay configuration management.

This module handles loading and accessing relay configuration from multiple
sources with a clear priority order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/relay.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The RelayConfig
dataclass provides typed access to all settings.

Usage:
    from translation_relay.config import config

    print(config.endpoints.urls)
    print(config.dispatch.throttle_ms)

Environment Variable Mapping:
    RELAY_ENDPOINTS          -> endpoints.urls
    RELAY_TIMEOUT_SECONDS    -> dispatch.timeout_seconds
    RELAY_THROTTLE_MS        -> dispatch.throttle_ms
    RELAY_FAIL_THRESHOLD     -> dispatch.fail_threshold
    RELAY_CACHE_ENABLED      -> cache.enabled
    RELAY_CACHE_PATH         -> cache.path
    RELAY_LOG_LEVEL          -> logging.level
"""

import configparser
import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Config file paths
CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "relay.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "relay.example.ini"

# Runs of commas and/or whitespace separate endpoint URLs.
_ENDPOINT_SPLIT_RE = re.compile(r"[,\s]+")


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class EndpointSettings:
    """Static endpoint list used at startup and whenever the feed clears."""

    urls: list[str] = field(default_factory=list)


@dataclass
class DispatchSettings:
    """Failover and throttling behaviour of the dispatcher."""

    # Per-attempt HTTP deadline. 0 disables the bound.
    timeout_seconds: float = 15.0
    # Pause between consecutive queued dispatches.
    throttle_ms: int = 300
    # Fully-failed rounds before the primary endpoint is demoted.
    fail_threshold: int = 2


@dataclass
class CacheSettings:
    """Translation cache persistence."""

    enabled: bool = True
    path: str = "data/relay_storage.json"
    namespace_key: str = "tranCache"

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to the storage file."""
        p = Path(self.path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class FeedSettings:
    """Endpoint configuration feed."""

    # Field of the pushed config document holding the endpoint list.
    endpoints_field: str = "gasEndpoints"


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed", "json"] = "detailed"


@dataclass
class RelayConfig:
    """
    Complete relay configuration.

    This is the main configuration object that aggregates all settings sections.
    Access via the module-level `config` singleton.
    """

    endpoints: EndpointSettings = field(default_factory=EndpointSettings)
    dispatch: DispatchSettings = field(default_factory=DispatchSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    feed: FeedSettings = field(default_factory=FeedSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def timeout(self) -> float | None:
        """HTTP timeout to hand to httpx, ``None`` when unbounded."""
        if self.dispatch.timeout_seconds <= 0:
            return None
        return self.dispatch.timeout_seconds


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def parse_endpoint_list(value: str | None) -> list[str]:
    """Parse a comma/space-delimited endpoint string into an ordered list.

    Empty pieces are dropped; order and duplicates are preserved because the
    list order is the rotation order.
    """
    if not value or value.strip() == "":
        return []
    return [item for item in _ENDPOINT_SPLIT_RE.split(value.strip()) if item]


def _load_from_ini(parser: configparser.ConfigParser, cfg: RelayConfig) -> None:
    """Load configuration from parsed INI file into RelayConfig."""
    # Endpoints section
    if parser.has_section("endpoints"):
        if parser.has_option("endpoints", "urls"):
            cfg.endpoints.urls = parse_endpoint_list(parser.get("endpoints", "urls"))

    # Dispatch section
    if parser.has_section("dispatch"):
        if parser.has_option("dispatch", "timeout_seconds"):
            cfg.dispatch.timeout_seconds = parser.getfloat("dispatch", "timeout_seconds")
        if parser.has_option("dispatch", "throttle_ms"):
            cfg.dispatch.throttle_ms = parser.getint("dispatch", "throttle_ms")
        if parser.has_option("dispatch", "fail_threshold"):
            cfg.dispatch.fail_threshold = parser.getint("dispatch", "fail_threshold")

    # Cache section
    if parser.has_section("cache"):
        if parser.has_option("cache", "enabled"):
            cfg.cache.enabled = _parse_bool(parser.get("cache", "enabled"))
        if parser.has_option("cache", "path"):
            cfg.cache.path = parser.get("cache", "path")
        if parser.has_option("cache", "namespace_key"):
            cfg.cache.namespace_key = parser.get("cache", "namespace_key")

    # Feed section
    if parser.has_section("feed"):
        if parser.has_option("feed", "endpoints_field"):
            cfg.feed.endpoints_field = parser.get("feed", "endpoints_field")

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed", "json"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: RelayConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # Endpoint list
    if (env_endpoints := os.getenv("RELAY_ENDPOINTS")) is not None:
        cfg.endpoints.urls = parse_endpoint_list(env_endpoints)

    # Dispatch settings
    if env_timeout := os.getenv("RELAY_TIMEOUT_SECONDS"):
        cfg.dispatch.timeout_seconds = float(env_timeout)
    if env_throttle := os.getenv("RELAY_THROTTLE_MS"):
        cfg.dispatch.throttle_ms = int(env_throttle)
    if env_threshold := os.getenv("RELAY_FAIL_THRESHOLD"):
        cfg.dispatch.fail_threshold = int(env_threshold)

    # Cache settings
    if env_cache_enabled := os.getenv("RELAY_CACHE_ENABLED"):
        cfg.cache.enabled = _parse_bool(env_cache_enabled)
    if env_cache_path := os.getenv("RELAY_CACHE_PATH"):
        cfg.cache.path = env_cache_path

    # Logging settings
    if env_log := os.getenv("RELAY_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()


def load_config() -> RelayConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/relay.ini
        3. config/relay.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        RelayConfig: Fully populated configuration object.
    """
    cfg = RelayConfig()

    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        config_file = CONFIG_EXAMPLE

    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)

    return cfg


def reload_config() -> "RelayConfig":
    """
    Reload configuration from disk and environment.

    This updates the module-level `config` singleton. Dispatchers that were
    already built keep the settings they were constructed with.

    Returns:
        RelayConfig: The newly loaded configuration.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


class _JsonFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Install a root handler matching ``[logging] level`` and ``format``."""
    settings = settings or config.logging
    handler = logging.StreamHandler()
    if settings.format == "json":
        handler.setFormatter(_JsonFormatter())
    elif settings.format == "simple":
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        )
    logging.basicConfig(level=settings.level, handlers=[handler], force=True)


def get_config_status() -> dict:
    """
    Get configuration status for diagnostics.

    Returns a dictionary with configuration source information,
    useful for debugging.
    """
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "endpoint_count": len(config.endpoints.urls),
        "cache_enabled": config.cache.enabled,
        "timeout_seconds": config.dispatch.timeout_seconds,
    }
