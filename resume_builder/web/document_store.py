"""Document store contract, resume record type and the in-memory backend."""

from __future__ import annotations

import asyncio
import copy
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, runtime_checkable

from typing_extensions import Protocol


def make_id(prefix: str) -> str:
    """Create opaque id matching the documented prefix style."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class TimestampClock:
    """UTC ISO-8601 timestamps that never repeat or go backwards in-process.

    ``updatedAt`` is the listing sort key, so two writes in the same
    microsecond must still order deterministically.
    """

    def __init__(self) -> None:
        self._last: Optional[datetime] = None

    def now_iso(self) -> str:
        now = datetime.now(timezone.utc)
        if self._last is not None and now <= self._last:
            now = self._last + timedelta(microseconds=1)
        self._last = now
        return now.isoformat(timespec="microseconds").replace("+00:00", "Z")


@dataclass
class ResumeRecord:
    resume_id: str
    owner_id: str
    document: Dict[str, Any]
    created_at: str
    updated_at: str
    version: int = 1

    @property
    def title(self) -> str:
        return str(self.document.get("title") or "")

    def to_dict(self) -> Dict[str, Any]:
        """Public camelCase representation."""
        payload: Dict[str, Any] = {"id": self.resume_id, "ownerId": self.owner_id}
        payload.update(copy.deepcopy(self.document))
        payload["createdAt"] = self.created_at
        payload["updatedAt"] = self.updated_at
        payload["version"] = self.version
        return payload


@runtime_checkable
class DocumentStore(Protocol):
    """Persistence surface consumed by the lifecycle service.

    Owned lookups always pass ``owner_id`` so the store filters on id and
    owner in the same query.
    """

    async def start(self) -> None: ...
    async def stop(self) -> None: ...

    async def insert(self, owner_id: str, document: Dict[str, Any]) -> ResumeRecord: ...

    async def find_one(self, resume_id: str, owner_id: Optional[str] = None) -> Optional[ResumeRecord]: ...

    async def find_many(self, owner_id: Optional[str] = None) -> List[ResumeRecord]:
        """Return matching records, most recently updated first."""
        ...

    async def update_by_id(
        self,
        resume_id: str,
        document: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[ResumeRecord]:
        """Replace the stored body; None when no row matched (gone or stale)."""
        ...

    async def delete_by_id(self, resume_id: str, owner_id: Optional[str] = None) -> bool: ...


class InMemoryDocumentStore:
    """Process-local document store for development and tests."""

    def __init__(self) -> None:
        self._records: Dict[str, ResumeRecord] = {}
        self._lock = asyncio.Lock()
        self._clock = TimestampClock()

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None

    async def insert(self, owner_id: str, document: Dict[str, Any]) -> ResumeRecord:
        async with self._lock:
            now = self._clock.now_iso()
            record = ResumeRecord(
                resume_id=make_id("res"),
                owner_id=owner_id,
                document=copy.deepcopy(document),
                created_at=now,
                updated_at=now,
            )
            self._records[record.resume_id] = record
            return copy.deepcopy(record)

    async def find_one(self, resume_id: str, owner_id: Optional[str] = None) -> Optional[ResumeRecord]:
        async with self._lock:
            record = self._records.get(resume_id)
            if record is None or (owner_id is not None and record.owner_id != owner_id):
                return None
            return copy.deepcopy(record)

    async def find_many(self, owner_id: Optional[str] = None) -> List[ResumeRecord]:
        async with self._lock:
            items = [
                copy.deepcopy(record)
                for record in self._records.values()
                if owner_id is None or record.owner_id == owner_id
            ]
        items.sort(key=lambda item: item.updated_at, reverse=True)
        return items

    async def update_by_id(
        self,
        resume_id: str,
        document: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[ResumeRecord]:
        async with self._lock:
            record = self._records.get(resume_id)
            if record is None:
                return None
            if expected_version is not None and record.version != expected_version:
                return None
            record.document = copy.deepcopy(document)
            record.updated_at = self._clock.now_iso()
            record.version += 1
            return copy.deepcopy(record)

    async def delete_by_id(self, resume_id: str, owner_id: Optional[str] = None) -> bool:
        async with self._lock:
            record = self._records.get(resume_id)
            if record is None or (owner_id is not None and record.owner_id != owner_id):
                return False
            del self._records[resume_id]
            return True
