"""SQLite implementation of the ActivityJournal protocol."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from cascade_relay.models.records import ActivityRecord

SCHEMA = """
-- Terminal outcomes: submissions, skips, claims, decode failures
CREATE TABLE IF NOT EXISTS activity_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_type TEXT NOT NULL,
    tag TEXT,
    block_number INTEGER,
    tx_hash TEXT,
    message TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_activity_created ON activity_log(created_at);
CREATE INDEX IF NOT EXISTS idx_activity_tag ON activity_log(tag);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteActivityJournal:
    """SQLite-backed audit trail. Write-only from the daemon's point of view."""

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
        assert self._db is not None, "Journal not initialized. Call initialize() first."
        return self._db

    async def log_activity(
        self,
        event_type: str,
        message: str,
        tag: str | None = None,
        block_number: int | None = None,
        tx_hash: str | None = None,
    ) -> None:
        await self.db.execute(
            "INSERT INTO activity_log (event_type, tag, block_number, tx_hash, message, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            (event_type, tag, block_number, tx_hash, message, _now()),
        )
        await self.db.commit()

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        async with self.db.execute(
            "SELECT * FROM activity_log ORDER BY created_at DESC, id DESC LIMIT ?", (limit,)
        ) as cur:
            return [
                ActivityRecord(
                    id=row["id"],
                    event_type=row["event_type"],
                    tag=row["tag"],
                    block_number=row["block_number"],
                    tx_hash=row["tx_hash"],
                    message=row["message"],
                    created_at=row["created_at"],
                )
                async for row in cur
            ]

    async def count_by_type(self) -> dict[str, int]:
        async with self.db.execute(
            "SELECT event_type, COUNT(*) AS n FROM activity_log GROUP BY event_type"
        ) as cur:
            return {row["event_type"]: row["n"] async for row in cur}
