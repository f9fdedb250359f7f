"""Image slot replacement: validate, store, clean up, then persist."""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from ..contracts import (
    DEFAULT_ALLOWED_IMAGE_MIME_TYPES,
    DEFAULT_MAX_UPLOAD_BYTES,
    IMAGE_EXTENSIONS,
    MAX_WRITE_ATTEMPTS,
)
from ..domain import filename_from_url, set_slot_url, slot_url
from .asset_storage import AssetStore
from .document_store import DocumentStore, ResumeRecord
from .errors import (
    APIError,
    ResumeNotFoundError,
    ResumeValidationError,
    StaleWriteError,
    UnsupportedMediaTypeError,
    UploadTooLargeError,
)

logger = logging.getLogger("resume_builder.assets")


@dataclass
class ImageUpload:
    """One uploaded file as received from the transport layer."""

    filename: str
    content: bytes
    mime_type: Optional[str]


class AssetLifecycleCoordinator:
    """Keeps a resume's image URLs and the stored files in step.

    Per slot: the new file is written before the old one is deleted, and the
    new URL is persisted only after that delete was attempted. A failed
    cleanup can orphan a file but never leaves a URL without its file.
    """

    def __init__(
        self,
        asset_store: AssetStore,
        document_store: DocumentStore,
        allowed_mime_types: Optional[Iterable[str]] = None,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ) -> None:
        self._assets = asset_store
        self._store = document_store
        self.allowed_mime_types = {
            item.strip().lower() for item in (allowed_mime_types or DEFAULT_ALLOWED_IMAGE_MIME_TYPES)
        }
        self.max_upload_bytes = max_upload_bytes

    def check_mime_type(self, mime_type: Optional[str]) -> str:
        normalized = (mime_type or "").split(";", 1)[0].strip().lower()
        if normalized not in self.allowed_mime_types:
            raise UnsupportedMediaTypeError(normalized, self.allowed_mime_types)
        return normalized

    def validate(self, upload: ImageUpload) -> str:
        """Check type and size before anything is written; return the MIME type."""
        mime_type = self.check_mime_type(upload.mime_type)
        if not upload.content:
            raise ResumeValidationError("Uploaded file is empty", {"filename": upload.filename})
        if len(upload.content) > self.max_upload_bytes:
            raise UploadTooLargeError(self.max_upload_bytes)
        return mime_type

    @staticmethod
    def new_filename(mime_type: str) -> str:
        """Stored names never derive from the client-supplied filename."""
        return f"{uuid.uuid4().hex}{IMAGE_EXTENSIONS.get(mime_type, '')}"

    async def replace(self, record: ResumeRecord, slot: str, upload: ImageUpload, base_url: str) -> str:
        """Swap the file behind *slot* and persist *record*; returns the new URL.

        *record* is updated in place with the persisted state so a second slot
        can be replaced on top of it.
        """
        mime_type = self.validate(upload)
        filename = self.new_filename(mime_type)
        await self._assets.save(filename, upload.content)

        previous_url = slot_url(record.document, slot)
        if previous_url:
            await self.discard(previous_url, resume_id=record.resume_id, slot=slot)

        url = self._assets.public_url(filename, base_url)
        try:
            updated = await self._persist_slot(record, slot, url)
        except APIError as exc:
            logger.warning(
                "asset_orphaned resume_id=%s slot=%s filename=%s reason=%s",
                record.resume_id,
                slot,
                filename,
                exc.code,
            )
            raise

        record.document = updated.document
        record.updated_at = updated.updated_at
        record.version = updated.version
        logger.info("asset_replaced resume_id=%s slot=%s filename=%s", record.resume_id, slot, filename)
        return url

    async def _persist_slot(self, record: ResumeRecord, slot: str, url: str) -> ResumeRecord:
        """Write *url* into *slot* on top of the latest stored version of *record*.

        Each attempt is conditional on the version it was built from. On a
        mismatch the row is reloaded, so the other slot and the body always come
        from the store and a concurrent write is never reverted.
        """
        current = record
        for _ in range(MAX_WRITE_ATTEMPTS):
            document = copy.deepcopy(current.document)
            set_slot_url(document, slot, url)
            updated = await self._store.update_by_id(
                current.resume_id, document, expected_version=current.version
            )
            if updated is not None:
                return updated
            current = await self._store.find_one(record.resume_id, owner_id=record.owner_id)
            if current is None:
                raise ResumeNotFoundError(record.resume_id)
            logger.info("asset_persist_retry resume_id=%s slot=%s version=%s", record.resume_id, slot, current.version)
        raise StaleWriteError(record.resume_id, current.version)

    async def discard(self, url: str, resume_id: str = "-", slot: str = "-") -> bool:
        """Best-effort delete of the file behind *url*; failures are logged only."""
        filename = filename_from_url(url)
        try:
            removed = await self._assets.delete(filename)
        except APIError as exc:
            logger.warning(
                "asset_cleanup_failed resume_id=%s slot=%s filename=%s error=%s",
                resume_id,
                slot,
                filename,
                exc.code,
            )
            return False
        if not removed:
            logger.info("asset_already_absent resume_id=%s slot=%s filename=%s", resume_id, slot, filename)
        return removed
