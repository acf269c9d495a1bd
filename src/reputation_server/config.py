"""
Server configuration management.

This module handles loading and accessing server configuration from multiple sources
with a clear priority order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/server.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The ServerConfig
dataclass provides typed access to all settings.

Usage:
    from reputation_server.config import config

    # Access settings
    print(config.server.port)
    print(config.store.absolute_path)
    print(config.reputation.per_subject_default)

Environment Variable Mapping:
    REP_HOST                      -> server.host
    REP_PORT                      -> server.port
    REP_STORE_BACKEND             -> store.backend
    REP_STORE_PATH                -> store.path
    REP_PER_SUBJECT_DEFAULT       -> reputation.per_subject_default
    REP_START_AT_NEUTRAL          -> reputation.start_at_neutral
    REP_POST_NOTIFICATIONS        -> reputation.post_notifications
    REP_NOTIFICATION_VISIBILITY   -> reputation.notification_visibility
    REP_SUBJECT_ACCESS            -> reputation.subject_access
    REP_LOOKUP_ROOT               -> lookup.tables_root
    REP_LOG_LEVEL                 -> logging.level
"""

import configparser
import json
import logging
import os
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
CONFIG_FILE = CONFIG_DIR / "server.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "server.example.ini"

NOTIFICATION_VISIBILITIES = ("operators", "all", "subjects")
SUBJECT_ACCESS_LEVELS = ("none", "view", "edit")


def _resolve_project_path(path: str) -> Path:
    p = Path(path)
    if p.is_absolute():
        return p
    return PROJECT_ROOT / p


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """Network server configuration."""

    host: str = "0.0.0.0"  # nosec B104 - intentional for server binding
    port: int = 8000


@dataclass
class StoreSettings:
    """Key-value store configuration."""

    backend: Literal["sqlite", "memory"] = "sqlite"
    path: str = "data/reputation.db"
    namespace: str = "reputation"

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to the SQLite store file."""
        return _resolve_project_path(self.path)


@dataclass
class ReputationSettings:
    """Process-wide reputation defaults.

    These seed the operator-editable module settings the first time they are
    read from the store (see ``reputation_server.reputation.settings``).
    """

    per_subject_default: bool = True
    start_at_neutral: bool = True
    post_notifications: bool = True
    notification_visibility: Literal["operators", "all", "subjects"] = "operators"
    subject_access: Literal["none", "view", "edit"] = "none"


@dataclass
class LookupSettings:
    """External lookup table configuration."""

    tables_root: str = "data/lookup_tables"

    @property
    def absolute_root(self) -> Path:
        """Get absolute path to the lookup table directory."""
        return _resolve_project_path(self.tables_root)


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed", "json"] = "detailed"


@dataclass
class ServerConfig:
    """
    Complete server configuration.

    This is the main configuration object that aggregates all settings sections.
    Access via the module-level `config` singleton.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    store: StoreSettings = field(default_factory=StoreSettings)
    reputation: ReputationSettings = field(default_factory=ReputationSettings)
    lookup: LookupSettings = field(default_factory=LookupSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _load_from_ini(parser: configparser.ConfigParser, cfg: ServerConfig) -> None:
    """Load configuration from parsed INI file into ServerConfig."""
    # Server section
    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = parser.getint("server", "port")

    # Store section
    if parser.has_section("store"):
        if parser.has_option("store", "backend"):
            val = parser.get("store", "backend").lower()
            if val in ("sqlite", "memory"):
                cfg.store.backend = val  # type: ignore[assignment]
        if parser.has_option("store", "path"):
            cfg.store.path = parser.get("store", "path")
        if parser.has_option("store", "namespace"):
            cfg.store.namespace = parser.get("store", "namespace")

    # Reputation section
    if parser.has_section("reputation"):
        if parser.has_option("reputation", "per_subject_default"):
            cfg.reputation.per_subject_default = _parse_bool(
                parser.get("reputation", "per_subject_default")
            )
        if parser.has_option("reputation", "start_at_neutral"):
            cfg.reputation.start_at_neutral = _parse_bool(
                parser.get("reputation", "start_at_neutral")
            )
        if parser.has_option("reputation", "post_notifications"):
            cfg.reputation.post_notifications = _parse_bool(
                parser.get("reputation", "post_notifications")
            )
        if parser.has_option("reputation", "notification_visibility"):
            val = parser.get("reputation", "notification_visibility").lower()
            if val in NOTIFICATION_VISIBILITIES:
                cfg.reputation.notification_visibility = val  # type: ignore[assignment]
        if parser.has_option("reputation", "subject_access"):
            val = parser.get("reputation", "subject_access").lower()
            if val in SUBJECT_ACCESS_LEVELS:
                cfg.reputation.subject_access = val  # type: ignore[assignment]

    # Lookup section
    if parser.has_section("lookup"):
        if parser.has_option("lookup", "tables_root"):
            cfg.lookup.tables_root = parser.get("lookup", "tables_root")

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed", "json"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: ServerConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # Server settings
    if env_host := os.getenv("REP_HOST"):
        cfg.server.host = env_host
    if env_port := os.getenv("REP_PORT"):
        cfg.server.port = int(env_port)

    # Store settings
    if env_backend := os.getenv("REP_STORE_BACKEND"):
        if env_backend.lower() in ("sqlite", "memory"):
            cfg.store.backend = env_backend.lower()  # type: ignore[assignment]
    if env_store := os.getenv("REP_STORE_PATH"):
        cfg.store.path = env_store

    # Reputation settings
    if env_per_subject := os.getenv("REP_PER_SUBJECT_DEFAULT"):
        cfg.reputation.per_subject_default = _parse_bool(env_per_subject)
    if env_neutral := os.getenv("REP_START_AT_NEUTRAL"):
        cfg.reputation.start_at_neutral = _parse_bool(env_neutral)
    if env_notify := os.getenv("REP_POST_NOTIFICATIONS"):
        cfg.reputation.post_notifications = _parse_bool(env_notify)
    if env_visibility := os.getenv("REP_NOTIFICATION_VISIBILITY"):
        visibility = env_visibility.lower()
        if visibility in NOTIFICATION_VISIBILITIES:
            cfg.reputation.notification_visibility = visibility  # type: ignore[assignment]
    if env_access := os.getenv("REP_SUBJECT_ACCESS"):
        if env_access.lower() in SUBJECT_ACCESS_LEVELS:
            cfg.reputation.subject_access = env_access.lower()  # type: ignore[assignment]

    # Lookup settings
    if env_lookup := os.getenv("REP_LOOKUP_ROOT"):
        cfg.lookup.tables_root = env_lookup

    # Logging settings
    if env_log := os.getenv("REP_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()


def load_config() -> ServerConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/server.ini
        3. config/server.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        ServerConfig: Fully populated configuration object.
    """
    cfg = ServerConfig()

    # Determine which config file to use
    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        # Use example as fallback for development
        config_file = CONFIG_EXAMPLE

    # Load from INI file if available
    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    # Apply environment variable overrides (highest priority)
    _apply_env_overrides(cfg)

    return cfg


def reload_config() -> "ServerConfig":
    """
    Reload configuration from disk and environment.

    This updates the module-level `config` singleton. Already-built services
    keep the store they were created with.

    Returns:
        ServerConfig: The newly loaded configuration.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

# Load configuration once at module import time
config = load_config()


# =============================================================================
# LOGGING
# =============================================================================

_LOG_FORMATS = {
    "simple": "%(levelname)s %(message)s",
    "detailed": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
}


class _JsonFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(cfg: ServerConfig | None = None) -> None:
    """Install a root handler using the ``[logging]`` section.

    Called by the CLI and the API server at startup. Library code only ever
    calls ``logging.getLogger(__name__)``.
    """
    cfg = cfg or config
    handler = logging.StreamHandler()
    if cfg.logging.format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_LOG_FORMATS[cfg.logging.format]))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, cfg.logging.level, logging.INFO))


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_config_status() -> dict:
    """
    Get configuration status for diagnostics.

    Returns a dictionary with configuration source information,
    useful for debugging and admin dashboards.
    """
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "store_backend": config.store.backend,
        "store_path": str(config.store.absolute_path),
        "per_subject_default": config.reputation.per_subject_default,
        "lookup_root": str(config.lookup.absolute_root),
    }


def print_config_summary() -> None:
    """Print a summary of current configuration to stdout."""
    status = get_config_status()
    print("\n" + "=" * 60)
    print("SERVER CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {status['config_file_path']}")
    print(f"File exists: {status['config_file_exists']}")
    if status["using_example"]:
        print("WARNING: Using example config (copy to server.ini for production)")
    print("-" * 60)
    print(f"Server:      {config.server.host}:{config.server.port}")
    print(f"Store:       {status['store_backend']} ({status['store_path']})")
    print(f"Per-subject: {status['per_subject_default']}")
    print(f"Lookups:     {status['lookup_root']}")
    print(f"Log level:   {config.logging.level}")
    print("=" * 60 + "\n")


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_test_store:
    """
    Context manager for using a temporary SQLite store.

    Usage:
        from reputation_server.config import use_test_store

        def test_something(tmp_path):
            with use_test_store(tmp_path / "test.db"):
                init_store()

    Args:
        store_path: Path to the test store file
    """

    def __init__(self, store_path: Path | str):
        self.store_path = Path(store_path)
        self.original_path: str | None = None
        self.original_backend: str | None = None

    def __enter__(self) -> Path:
        """Point the config at the test store."""
        self.original_path = config.store.path
        self.original_backend = config.store.backend
        config.store.path = str(self.store_path)
        config.store.backend = "sqlite"
        return self.store_path

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore original store settings."""
        if self.original_path is not None:
            config.store.path = self.original_path
        if self.original_backend is not None:
            config.store.backend = self.original_backend  # type: ignore[assignment]
        return None
