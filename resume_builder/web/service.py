"""Resume lifecycle service: the façade behind every resume endpoint."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..contracts import DEFAULT_MAX_UPLOAD_BYTES, MAX_WRITE_ATTEMPTS
from ..domain import apply_patch, default_document, score, slot_url
from ..domain.resume_document import asset_urls
from .asset_storage import AssetStore
from .assets import AssetLifecycleCoordinator, ImageUpload
from .document_store import DocumentStore, ResumeRecord
from .errors import ResumeNotFoundError, ResumeValidationError, StaleWriteError
from .ownership import OwnershipGuard
from .redaction import redact_for_log

audit_logger = logging.getLogger("resume_builder.web.audit")


def resume_payload(record: ResumeRecord) -> Dict[str, Any]:
    """Public representation enriched with the derived completion score."""
    payload = record.to_dict()
    payload["completion"] = score(record.document)
    return payload


class ResumeLifecycleService:
    """Create, read, update, delete and attach images to owned resumes.

    Every operation takes the owner id explicitly; nothing is read from
    request-scoped state.
    """

    def __init__(
        self,
        document_store: DocumentStore,
        asset_store: AssetStore,
        allowed_mime_types: Optional[Iterable[str]] = None,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        optimistic_concurrency: bool = False,
    ) -> None:
        self.document_store = document_store
        self.asset_store = asset_store
        self.guard = OwnershipGuard(document_store)
        self.assets = AssetLifecycleCoordinator(
            asset_store=asset_store,
            document_store=document_store,
            allowed_mime_types=allowed_mime_types,
            max_upload_bytes=max_upload_bytes,
        )
        self.optimistic_concurrency = optimistic_concurrency

    async def start(self) -> None:
        await self.asset_store.start()
        await self.document_store.start()

    async def stop(self) -> None:
        await self.document_store.stop()

    # -- resumes -------------------------------------------------------------

    async def create_resume(
        self,
        owner_id: str,
        title: str,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> ResumeRecord:
        normalized_title = (title or "").strip() if isinstance(title, str) else ""
        if not normalized_title:
            raise ResumeValidationError("Title is required")

        extra = {key: value for key, value in (overrides or {}).items() if key != "title"}
        document = apply_patch(default_document(normalized_title), extra)
        record = await self.document_store.insert(owner_id, document)
        await self._audit("resume_created", owner_id, record.resume_id, {"title": record.title})
        return record

    async def list_resumes(self, owner_id: str) -> List[ResumeRecord]:
        return await self.document_store.find_many(owner_id=owner_id)

    async def get_resume(self, resume_id: str, owner_id: str) -> ResumeRecord:
        return await self.guard.load_owned(resume_id, owner_id)

    async def update_resume(
        self,
        resume_id: str,
        owner_id: str,
        patch: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> ResumeRecord:
        record = await self.guard.load_owned(resume_id, owner_id)
        if "title" in patch:
            title = patch["title"]
            if not isinstance(title, str) or not title.strip():
                raise ResumeValidationError("Title cannot be empty")
        if self.optimistic_concurrency and expected_version is None:
            raise ResumeValidationError("expectedVersion is required when optimistic concurrency is enabled")

        # Writes are conditional on the version the patch was applied to;
        # image URLs always come from that stored row.
        attempts = 1 if self.optimistic_concurrency else MAX_WRITE_ATTEMPTS
        updated: Optional[ResumeRecord] = None
        version = record.version
        for _ in range(attempts):
            version = expected_version if self.optimistic_concurrency else record.version
            merged = apply_patch(record.document, patch)
            updated = await self.document_store.update_by_id(resume_id, merged, expected_version=version)
            if updated is not None:
                break
            record = await self.guard.load_owned(resume_id, owner_id)
        if updated is None:
            raise StaleWriteError(resume_id, version)

        await self._audit(
            "resume_updated",
            owner_id,
            resume_id,
            {"fields": sorted(patch.keys()), "version": updated.version},
        )
        return updated

    async def delete_resume(self, resume_id: str, owner_id: str) -> None:
        record = await self.guard.load_owned(resume_id, owner_id)
        for slot in ("thumbnail", "profileImage"):
            url = slot_url(record.document, slot)
            if url:
                await self.assets.discard(url, resume_id=resume_id, slot=slot)

        deleted = await self.document_store.delete_by_id(resume_id, owner_id=owner_id)
        if not deleted:
            raise ResumeNotFoundError(resume_id)
        await self._audit("resume_deleted", owner_id, resume_id, {"assets": len(asset_urls(record.document))})

    async def upload_resume_images(
        self,
        resume_id: str,
        owner_id: str,
        base_url: str,
        thumbnail: Optional[ImageUpload] = None,
        profile_image: Optional[ImageUpload] = None,
    ) -> Dict[str, Optional[str]]:
        uploads = [
            (slot, upload)
            for slot, upload in (("thumbnail", thumbnail), ("profileImage", profile_image))
            if upload is not None
        ]
        if not uploads:
            raise ResumeValidationError("No files uploaded")

        record = await self.guard.load_owned(resume_id, owner_id)
        for _, upload in uploads:
            self.assets.validate(upload)

        for slot, upload in uploads:
            await self.assets.replace(record, slot, upload, base_url=base_url)

        await self._audit(
            "resume_images_uploaded",
            owner_id,
            resume_id,
            {"slots": [slot for slot, _ in uploads]},
        )
        return {
            "thumbnailUrl": slot_url(record.document, "thumbnail"),
            "profileImageUrl": slot_url(record.document, "profileImage"),
        }

    # -- internals -----------------------------------------------------------

    async def _audit(
        self,
        action: str,
        owner_id: str,
        resume_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        safe_details = redact_for_log(details or {})
        audit_logger.info(
            "audit action=%s owner_id=%s resume_id=%s details=%s",
            action,
            owner_id,
            resume_id,
            safe_details,
        )
