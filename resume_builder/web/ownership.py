"""Owner-scoped access to stored resumes."""

from __future__ import annotations

from .document_store import DocumentStore, ResumeRecord
from .errors import ResumeNotFoundError


class OwnershipGuard:
    """Every read or write of an existing resume goes through here.

    A resume owned by someone else is reported exactly like a missing one.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def load_owned(self, resume_id: str, owner_id: str) -> ResumeRecord:
        record = await self._store.find_one(resume_id, owner_id=owner_id)
        if record is None:
            raise ResumeNotFoundError(resume_id)
        return record

    @staticmethod
    def assert_owned(record: ResumeRecord, owner_id: str) -> None:
        if record.owner_id != owner_id:
            # Hide cross-owner existence.
            raise ResumeNotFoundError(record.resume_id)
