"""Stats database: aiosqlite in WAL mode with a versioned schema."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

SCHEMA = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

-- Focus sessions that ran to completion
CREATE TABLE IF NOT EXISTS focus_completions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    completed_at DATETIME NOT NULL,
    date DATE NOT NULL,
    minutes INTEGER NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_completion_date ON focus_completions(date);
"""

PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA busy_timeout=5000",
)


class Database:
    """Async SQLite store for completed focus sessions.

    Runs in autocommit mode; each insert is its own transaction.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def _require(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected")
        return self._conn

    async def connect(self) -> None:
        """Open the database, creating or upgrading the schema as needed."""
        if self._conn is not None:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        for pragma in PRAGMAS:
            await conn.execute(pragma)
        conn.row_factory = aiosqlite.Row
        self._conn = conn

        await self._migrate()
        logger.info(f"Stats database ready: {self.db_path}")

    async def _migrate(self) -> None:
        await self._require().executescript(SCHEMA)

        row = await self.fetch_one("SELECT COALESCE(MAX(version), 0) AS version FROM schema_version")
        if row["version"] < SCHEMA_VERSION:
            await self._require().execute(
                "INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
            )
            logger.info(f"Stats schema at version {SCHEMA_VERSION}")

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    async def fetch_one(self, query: str, params: tuple[Any, ...] = ()) -> dict[str, Any] | None:
        async with self._require().execute(query, params) as cursor:
            row = await cursor.fetchone()
        return dict(row) if row else None

    async def fetch_all(self, query: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        async with self._require().execute(query, params) as cursor:
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def insert(self, table: str, row: dict[str, Any]) -> int:
        """Insert one row and return its id."""
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        cursor = await self._require().execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
            tuple(row.values()),
        )
        return cursor.lastrowid or 0


async def init_database(db_path: Path) -> Database:
    """Create and connect a database."""
    db = Database(db_path)
    await db.connect()
    return db
