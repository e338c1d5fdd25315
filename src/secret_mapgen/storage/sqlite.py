"""SQLite implementation of the PreferenceStore protocol."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

SCHEMA = """
-- Persisted user preferences (e.g. wallet auto-connect)
CREATE TABLE IF NOT EXISTS preferences (
    name TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLitePreferenceStore:
    """SQLite-backed preference flags.

    Flags are stored as the strings ``"true"``/``"false"``; anything else
    (including an absent row) reads as False.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    async def get(self, name: str) -> str | None:
        async with self.db.execute(
            "SELECT value FROM preferences WHERE name=?", (name,)
        ) as cur:
            row = await cur.fetchone()
            return row["value"] if row else None

    async def set(self, name: str, value: str) -> None:
        await self.db.execute(
            "INSERT INTO preferences (name, value, updated_at) VALUES (?, ?, ?)"
            " ON CONFLICT(name) DO UPDATE SET value=excluded.value,"
            " updated_at=excluded.updated_at",
            (name, value, _now()),
        )
        await self.db.commit()

    async def get_flag(self, name: str) -> bool:
        return await self.get(name) == "true"

    async def set_flag(self, name: str, value: bool) -> None:
        await self.set(name, "true" if value else "false")
