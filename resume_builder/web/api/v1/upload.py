"""Upload helpers for request-size enforcement before full buffering."""

from __future__ import annotations

from typing import Optional

from fastapi import UploadFile

from ...assets import AssetLifecycleCoordinator, ImageUpload
from ...errors import UploadTooLargeError


async def read_upload_with_limit(file: UploadFile, max_bytes: int) -> bytes:
    """Read an upload stream with hard byte limit.

    This prevents loading arbitrarily large payloads into memory before validation.
    """
    chunks: list[bytes] = []
    total = 0
    chunk_size = 64 * 1024

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise UploadTooLargeError(max_bytes)
        chunks.append(chunk)

    return b"".join(chunks)


async def to_image_upload(
    file: Optional[UploadFile],
    coordinator: AssetLifecycleCoordinator,
) -> Optional[ImageUpload]:
    """Buffer one optional multipart field into an :class:`ImageUpload`.

    The declared content type is checked before the body is read.
    """
    if file is None:
        return None
    mime_type = coordinator.check_mime_type(file.content_type)
    content = await read_upload_with_limit(file=file, max_bytes=coordinator.max_upload_bytes)
    return ImageUpload(filename=file.filename or "", content=content, mime_type=mime_type)
