"""
SQLite key-value backend using aiosqlite.

Values live in a single kv_store table; writes are upserts so the fixed
storage key always holds the latest full snapshot.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite

from tasktrack.storage.interface import KeyValueBackend

logger = logging.getLogger(__name__)

KV_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS kv_store (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT
    )
"""


class SQLiteBackend(KeyValueBackend):
    """
    SQLite-backed key-value store.

    Automatically creates the database file, parent directories and table.
    """

    def __init__(self, db_path: str = "~/.tasktrack/tasktrack.db"):
        """
        Initialize SQLite backend.

        Args:
            db_path: Path to SQLite database file.
                    Supports ~ expansion for home directory.
        """
        self.db_path = Path(db_path).expanduser()
        self._conn: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Open the database and create the table if needed."""
        if self._conn is not None:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(str(self.db_path))

        # Use WAL mode for better concurrent access
        await self._conn.execute("PRAGMA journal_mode = WAL")
        await self._conn.execute(KV_TABLE_SQL)
        await self._conn.commit()

        logger.info(f"SQLite storage connected: {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite connection closed")

    async def _get_conn(self) -> aiosqlite.Connection:
        """Get or create connection."""
        if self._conn is None:
            await self.connect()
        return self._conn

    async def get(self, key: str) -> Optional[str]:
        conn = await self._get_conn()
        cursor = await conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = await cursor.fetchone()
        await cursor.close()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        conn = await self._get_conn()
        await conn.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, value, datetime.now(timezone.utc).isoformat()),
        )
        await conn.commit()

    @property
    def name(self) -> str:
        return "sqlite"
