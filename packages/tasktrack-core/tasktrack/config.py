"""
Tasktrack Configuration

Loads settings from ~/.tasktrack/config.yaml with environment variable overrides.
Supports SQLite, PostgreSQL and in-memory storage backends.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from datetime import tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import os
import logging

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".tasktrack"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

DEFAULT_STORAGE_KEY = "todos"
STORAGE_TYPES = ("sqlite", "postgres", "memory")


@dataclass
class StorageConfig:
    """Persistence backend settings."""

    type: str = "sqlite"  # "sqlite", "postgres" or "memory"
    sqlite_path: str = "~/.tasktrack/tasktrack.db"
    postgres_url: Optional[str] = None
    key: str = DEFAULT_STORAGE_KEY


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class DisplayConfig:
    """Settings that shape derived views (day buckets, export columns)."""

    timezone: Optional[str] = None  # IANA name; None means process local time
    recent_completions: int = 5

    @property
    def zone(self) -> Optional[tzinfo]:
        """Resolve the configured zone; None falls back to local time."""
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {self.timezone!r}; using local time")
            return None


@dataclass
class TasktrackConfig:
    """
    Complete Tasktrack configuration.

    Loaded from ~/.tasktrack/config.yaml with environment variable overrides.
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    @property
    def storage_key(self) -> str:
        return self.storage.key

    def to_dict(self) -> dict:
        """Convert to dictionary for display (masks secrets)."""
        result = asdict(self)

        if result.get("storage", {}).get("postgres_url"):
            url = result["storage"]["postgres_url"]
            result["storage"]["postgres_url"] = url[:30] + "..." if len(url) > 30 else "***"

        return result


def _parse_storage_config(data: dict) -> StorageConfig:
    """Parse storage configuration from YAML data."""
    storage_data = data.get("storage") or {}

    storage_type = str(storage_data.get("type", "sqlite")).lower()

    sqlite_config = storage_data.get("sqlite") or {}
    sqlite_path = sqlite_config.get("path", "~/.tasktrack/tasktrack.db")

    postgres_config = storage_data.get("postgres") or {}
    postgres_url = postgres_config.get("url")

    # Check for URL from environment variable reference
    url_env = postgres_config.get("url_env")
    if url_env and not postgres_url:
        postgres_url = os.environ.get(url_env)

    return StorageConfig(
        type=storage_type,
        sqlite_path=sqlite_path,
        postgres_url=postgres_url,
        key=storage_data.get("key", DEFAULT_STORAGE_KEY),
    )


def _parse_logging_config(data: dict) -> LoggingConfig:
    """Parse logging configuration from YAML data."""
    logging_data = data.get("logging") or {}

    return LoggingConfig(
        level=str(logging_data.get("level", "INFO")).upper(),
        file=logging_data.get("file"),
    )


def _parse_display_config(data: dict) -> DisplayConfig:
    """Parse display configuration from YAML data."""
    display_data = data.get("display") or {}

    return DisplayConfig(
        timezone=display_data.get("timezone"),
        recent_completions=int(display_data.get("recent_completions", 5)),
    )


def load_config(config_path: Optional[Path] = None) -> TasktrackConfig:
    """
    Load configuration from file with environment variable overrides.

    Args:
        config_path: Optional path to config file. Defaults to ~/.tasktrack/config.yaml

    Returns:
        TasktrackConfig instance
    """
    config_file = config_path or CONFIG_FILE
    config = TasktrackConfig()

    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                data = yaml.safe_load(f) or {}

            config.storage = _parse_storage_config(data)
            config.logging = _parse_logging_config(data)
            config.display = _parse_display_config(data)

        except yaml.YAMLError as e:
            logger.warning(f"Could not parse config file at {config_file}: {e}")
        except Exception as e:
            logger.warning(f"Unexpected error loading config from {config_file}: {e}")

    # Environment variable overrides
    if os.environ.get("TASKTRACK_DATABASE_URL"):
        config.storage.type = "postgres"
        config.storage.postgres_url = os.environ["TASKTRACK_DATABASE_URL"]

    if os.environ.get("TASKTRACK_STORAGE_KEY"):
        config.storage.key = os.environ["TASKTRACK_STORAGE_KEY"]

    if os.environ.get("TASKTRACK_LOG_LEVEL"):
        config.logging.level = os.environ["TASKTRACK_LOG_LEVEL"].upper()

    if os.environ.get("TASKTRACK_TIMEZONE"):
        config.display.timezone = os.environ["TASKTRACK_TIMEZONE"]

    return config


def save_config(config: TasktrackConfig, config_path: Optional[Path] = None) -> None:
    """
    Save configuration to file.

    Args:
        config: TasktrackConfig instance to save
        config_path: Optional path to config file. Defaults to ~/.tasktrack/config.yaml
    """
    config_file = config_path or CONFIG_FILE

    config_file.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "storage": {
            "type": config.storage.type,
            "key": config.storage.key,
        },
        "logging": {
            "level": config.logging.level,
        },
        "display": {
            "recent_completions": config.display.recent_completions,
        },
    }

    if config.storage.type == "sqlite":
        data["storage"]["sqlite"] = {"path": config.storage.sqlite_path}
    elif config.storage.postgres_url:
        data["storage"]["postgres"] = {"url": config.storage.postgres_url}

    if config.logging.file:
        data["logging"]["file"] = config.logging.file
    if config.display.timezone:
        data["display"]["timezone"] = config.display.timezone

    with open(config_file, 'w') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    # Secure permissions (readable only by owner)
    config_file.chmod(0o600)

    logger.info(f"Configuration saved to {config_file}")


# Cached config instance
_config: Optional[TasktrackConfig] = None


def get_config() -> TasktrackConfig:
    """Get cached config instance, loading if needed."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
