"""
Storage backend factory.

Creates the appropriate backend based on configuration.
"""

import logging

from tasktrack.storage.interface import KeyValueBackend

logger = logging.getLogger(__name__)

# Global backend instance (singleton pattern)
_backend: KeyValueBackend | None = None


def get_backend(config=None) -> KeyValueBackend:
    """
    Get or create the storage backend based on configuration.

    Uses singleton pattern - returns same backend instance on subsequent calls.

    Args:
        config: Optional TasktrackConfig. If not provided, loads from default location.

    Returns:
        KeyValueBackend instance (SQLiteBackend, PostgresBackend or MemoryBackend)

    Raises:
        ValueError: If storage configuration is invalid
    """
    global _backend

    if _backend is not None:
        return _backend

    if config is None:
        from tasktrack.config import load_config
        config = load_config()

    storage_type = config.storage.type.lower()

    if storage_type == "postgres" or storage_type == "postgresql":
        from tasktrack.storage.postgres import PostgresBackend

        url = config.storage.postgres_url
        if not url:
            raise ValueError(
                "PostgreSQL URL not configured. "
                "Set storage.postgres.url in config or TASKTRACK_DATABASE_URL env var."
            )

        _backend = PostgresBackend(url)
        logger.info("Using PostgreSQL storage")

    elif storage_type == "sqlite":
        from tasktrack.storage.sqlite import SQLiteBackend

        path = config.storage.sqlite_path
        _backend = SQLiteBackend(path)
        logger.info(f"Using SQLite storage: {path}")

    elif storage_type == "memory":
        from tasktrack.storage.memory import MemoryBackend

        _backend = MemoryBackend()
        logger.info("Using in-memory storage; tasks will not survive restart")

    else:
        raise ValueError(
            f"Unknown storage type: {storage_type}. "
            "Use 'sqlite', 'postgres' or 'memory'."
        )

    return _backend


async def init_backend(config=None) -> KeyValueBackend:
    """
    Initialize the storage backend and connect.

    Args:
        config: Optional TasktrackConfig

    Returns:
        Connected KeyValueBackend instance
    """
    backend = get_backend(config)
    await backend.connect()
    return backend


async def close_backend() -> None:
    """Close the global backend connection."""
    global _backend

    if _backend is not None:
        await _backend.close()
        _backend = None


def reset_backend() -> None:
    """
    Reset the global backend instance.

    Useful for testing or when configuration changes.
    """
    global _backend
    _backend = None
