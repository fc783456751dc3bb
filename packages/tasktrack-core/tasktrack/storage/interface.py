"""
Abstract key-value backend interface.

The task collection is persisted as one JSON document under a single fixed
key, so a backend only needs string get/set semantics.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueBackend(ABC):
    """
    Abstract base class for persistence backends.

    Implementations must support:
    - Connection lifecycle (connect, close)
    - get(key) returning the stored string or None when absent
    - set(key, value) replacing any previous value
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize connection/pool."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close connection/pool."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under key.

        Args:
            key: Storage key

        Returns:
            The stored string, or None if the key is absent
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Store value under key, replacing any previous value.

        Args:
            key: Storage key
            value: Serialized payload
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Short backend name ("sqlite", "postgres", "memory")."""
        pass
