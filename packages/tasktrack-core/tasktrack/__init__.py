"""
Tasktrack Core Library

Personal and team task tracking with completion analytics.
"""

__version__ = "0.1.0"

from tasktrack.config import TasktrackConfig, load_config
from tasktrack.storage import KeyValueBackend, get_backend

__all__ = [
    "load_config",
    "TasktrackConfig",
    "get_backend",
    "KeyValueBackend",
]
