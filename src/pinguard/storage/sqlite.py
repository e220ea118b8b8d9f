"""SQLite implementation of the AuditSink protocol."""

from __future__ import annotations

import json
from pathlib import Path

import aiosqlite

from pinguard.models.events import AuditEvent, AuditStatus, Severity

SCHEMA = """
-- Append-only audit trail, one row per gateway attempt
CREATE TABLE IF NOT EXISTS audit_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    action TEXT NOT NULL,
    status TEXT NOT NULL,
    severity TEXT NOT NULL DEFAULT 'low',
    details TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_audit_created ON audit_log(created_at);
CREATE INDEX IF NOT EXISTS idx_audit_action ON audit_log(action);
"""


class SQLiteAuditSink:
    """SQLite-backed audit sink."""

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
        assert self._db is not None, "Sink not initialized. Call initialize() first."
        return self._db

    async def write(self, event: AuditEvent) -> None:
        await self.db.execute(
            "INSERT INTO audit_log (action, status, severity, details, created_at)"
            " VALUES (?, ?, ?, ?, ?)",
            (
                event.action,
                event.status.value,
                event.severity.value,
                json.dumps(dict(event.details), default=str),
                event.timestamp,
            ),
        )
        await self.db.commit()

    async def recent(self, limit: int = 50, action: str | None = None) -> list[AuditEvent]:
        """Most recent events first, optionally filtered by action prefix."""
        if action:
            query = (
                "SELECT * FROM audit_log WHERE action LIKE ?"
                " ORDER BY id DESC LIMIT ?"
            )
            params: tuple = (f"{action}%", limit)
        else:
            query = "SELECT * FROM audit_log ORDER BY id DESC LIMIT ?"
            params = (limit,)
        async with self.db.execute(query, params) as cur:
            return [
                AuditEvent(
                    action=row["action"],
                    status=AuditStatus(row["status"]),
                    details=json.loads(row["details"]),
                    severity=Severity(row["severity"]),
                    timestamp=row["created_at"],
                )
                for row in await cur.fetchall()
            ]

    async def count(self) -> int:
        async with self.db.execute("SELECT COUNT(*) AS n FROM audit_log") as cur:
            row = await cur.fetchone()
            return row["n"] if row else 0
