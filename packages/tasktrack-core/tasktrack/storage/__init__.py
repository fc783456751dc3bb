"""
Key-value persistence backends (SQLite, PostgreSQL, in-memory).
"""

from tasktrack.storage.factory import close_backend, get_backend, init_backend, reset_backend
from tasktrack.storage.interface import KeyValueBackend
from tasktrack.storage.memory import MemoryBackend

__all__ = [
    "KeyValueBackend",
    "MemoryBackend",
    "get_backend",
    "init_backend",
    "close_backend",
    "reset_backend",
]
