"""
In-process key-value backend.

Nothing survives the process; used for throwaway sessions and tests.
"""

from typing import Dict, Optional

from tasktrack.storage.interface import KeyValueBackend


class MemoryBackend(KeyValueBackend):
    """Dict-backed key-value store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    @property
    def name(self) -> str:
        return "memory"
