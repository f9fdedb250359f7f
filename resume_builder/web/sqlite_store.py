"""SQLite-backed document store: durable across restarts."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

from .document_store import ResumeRecord, TimestampClock, make_id
from .errors import StoreUnavailableError

logger = logging.getLogger("resume_builder.web.api")

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS resumes (
    resume_id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    document_json TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 1
);
CREATE INDEX IF NOT EXISTS idx_resumes_owner_updated ON resumes(owner_id, updated_at);
"""


def _row_to_record(row: aiosqlite.Row) -> ResumeRecord:
    document = json.loads(row["document_json"]) if row["document_json"] else {}
    return ResumeRecord(
        resume_id=row["resume_id"],
        owner_id=row["owner_id"],
        document=document,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        version=row["version"] or 1,
    )


class SQLiteDocumentStore:
    """Resume documents stored as JSON bodies in one SQLite table."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._db: Optional[aiosqlite.Connection] = None
        self._clock = TimestampClock()

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._db = await aiosqlite.connect(str(self._db_path))
            self._db.row_factory = aiosqlite.Row
            await self._db.execute("PRAGMA journal_mode=WAL")
            await self._db.executescript(_SCHEMA_SQL)
            await self._db.commit()
        except aiosqlite.Error as exc:
            logger.exception("store_start_failed db_path=%s", self._db_path)
            raise StoreUnavailableError() from exc

    async def stop(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    # -- documents -----------------------------------------------------------

    async def insert(self, owner_id: str, document: Dict[str, Any]) -> ResumeRecord:
        db = self._connection()
        resume_id = make_id("res")
        now = self._clock.now_iso()
        try:
            await db.execute(
                "INSERT INTO resumes (resume_id, owner_id, document_json, created_at, updated_at, version)"
                " VALUES (?, ?, ?, ?, ?, 1)",
                (resume_id, owner_id, json.dumps(document), now, now),
            )
            await db.commit()
        except aiosqlite.Error as exc:
            logger.exception("store_insert_failed owner_id=%s", owner_id)
            raise StoreUnavailableError() from exc
        return ResumeRecord(
            resume_id=resume_id,
            owner_id=owner_id,
            document=json.loads(json.dumps(document)),
            created_at=now,
            updated_at=now,
        )

    async def find_one(self, resume_id: str, owner_id: Optional[str] = None) -> Optional[ResumeRecord]:
        db = self._connection()
        if owner_id is None:
            query, params = "SELECT * FROM resumes WHERE resume_id = ?", (resume_id,)
        else:
            query = "SELECT * FROM resumes WHERE resume_id = ? AND owner_id = ?"
            params = (resume_id, owner_id)
        try:
            async with db.execute(query, params) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            logger.exception("store_find_failed resume_id=%s", resume_id)
            raise StoreUnavailableError() from exc
        return _row_to_record(row) if row else None

    async def find_many(self, owner_id: Optional[str] = None) -> List[ResumeRecord]:
        db = self._connection()
        if owner_id is None:
            query, params = "SELECT * FROM resumes ORDER BY updated_at DESC", ()
        else:
            query = "SELECT * FROM resumes WHERE owner_id = ? ORDER BY updated_at DESC"
            params = (owner_id,)
        try:
            async with db.execute(query, params) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            logger.exception("store_list_failed owner_id=%s", owner_id or "-")
            raise StoreUnavailableError() from exc
        return [_row_to_record(row) for row in rows]

    async def update_by_id(
        self,
        resume_id: str,
        document: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[ResumeRecord]:
        db = self._connection()
        now = self._clock.now_iso()
        query = (
            "UPDATE resumes SET document_json = ?, updated_at = ?, version = version + 1"
            " WHERE resume_id = ?"
        )
        params: tuple = (json.dumps(document), now, resume_id)
        if expected_version is not None:
            query += " AND version = ?"
            params = params + (expected_version,)
        try:
            cursor = await db.execute(query, params)
            await db.commit()
            if cursor.rowcount == 0:
                return None
        except aiosqlite.Error as exc:
            logger.exception("store_update_failed resume_id=%s", resume_id)
            raise StoreUnavailableError() from exc
        return await self.find_one(resume_id)

    async def delete_by_id(self, resume_id: str, owner_id: Optional[str] = None) -> bool:
        db = self._connection()
        if owner_id is None:
            query, params = "DELETE FROM resumes WHERE resume_id = ?", (resume_id,)
        else:
            query = "DELETE FROM resumes WHERE resume_id = ? AND owner_id = ?"
            params = (resume_id, owner_id)
        try:
            cursor = await db.execute(query, params)
            await db.commit()
        except aiosqlite.Error as exc:
            logger.exception("store_delete_failed resume_id=%s", resume_id)
            raise StoreUnavailableError() from exc
        return cursor.rowcount > 0

    def _connection(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreUnavailableError("Document store is not started")
        return self._db
