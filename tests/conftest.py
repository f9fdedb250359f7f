"""Global pytest fixtures for deterministic test environment."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import pytest_asyncio

from resume_builder.web.asset_storage import LocalAssetStorageProvider
from resume_builder.web.assets import ImageUpload
from resume_builder.web.document_store import InMemoryDocumentStore
from resume_builder.web.service import ResumeLifecycleService

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32


@pytest.fixture(autouse=True)
def _isolate_runtime_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear local runtime env that can leak into tests on developer machines."""
    for key in list(os.environ):
        if key.startswith("RESUME_BUILDER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def asset_root(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest_asyncio.fixture
async def service(asset_root: Path):
    """Lifecycle service over the in-memory store and a temp asset directory."""
    svc = ResumeLifecycleService(
        document_store=InMemoryDocumentStore(),
        asset_store=LocalAssetStorageProvider(asset_root),
    )
    await svc.start()
    yield svc
    await svc.stop()


@pytest.fixture
def png_upload() -> ImageUpload:
    return ImageUpload(filename="photo.png", content=PNG_BYTES, mime_type="image/png")


@pytest.fixture
def jpeg_upload() -> ImageUpload:
    return ImageUpload(filename="photo.jpg", content=JPEG_BYTES, mime_type="image/jpeg")
