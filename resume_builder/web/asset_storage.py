"""Asset storage abstraction for uploaded resume images."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .errors import APIError, StoreUnavailableError

logger = logging.getLogger("resume_builder.assets")


@dataclass
class StoredAsset:
    """Metadata of one file held by an asset store."""

    filename: str
    size: int
    modified_at: float
    mime_type: str


class AssetStore(ABC):
    """Flat, filename-addressed store for image assets."""

    mount_path: str

    @abstractmethod
    async def start(self) -> None:
        """Prepare backing storage."""

    @abstractmethod
    async def save(self, filename: str, content: bytes) -> StoredAsset:
        """Persist *content* under *filename*, replacing any existing file."""

    @abstractmethod
    async def exists(self, filename: str) -> bool:
        """Return whether *filename* is currently stored."""

    @abstractmethod
    async def delete(self, filename: str) -> bool:
        """Remove *filename*; a missing file is a no-op returning False."""

    @abstractmethod
    async def list_assets(self) -> List[StoredAsset]:
        """List every stored file."""

    def public_url(self, filename: str, base_url: str) -> str:
        """Return ``{base_url}/{mount_path}/{filename}``."""
        return f"{base_url.rstrip('/')}/{self.mount_path.strip('/')}/{filename}"


class LocalAssetStorageProvider(AssetStore):
    """Local-disk asset backend, served by a static files mount."""

    def __init__(self, root_dir: Path, mount_path: str = "uploads") -> None:
        self.root_dir = root_dir.resolve()
        self.mount_path = mount_path

    async def start(self) -> None:
        try:
            await asyncio.to_thread(self.root_dir.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            logger.exception("asset_root_unavailable root=%s", self.root_dir)
            raise StoreUnavailableError() from exc

    async def save(self, filename: str, content: bytes) -> StoredAsset:
        target = self._resolve_asset_path(filename)

        def _write() -> StoredAsset:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
            return self._describe(target)

        try:
            return await asyncio.to_thread(_write)
        except OSError as exc:
            logger.exception("asset_write_failed filename=%s", filename)
            raise StoreUnavailableError() from exc

    async def exists(self, filename: str) -> bool:
        target = self._resolve_asset_path(filename)
        return await asyncio.to_thread(target.is_file)

    async def delete(self, filename: str) -> bool:
        target = self._resolve_asset_path(filename)

        def _delete() -> bool:
            if not target.is_file():
                return False
            target.unlink(missing_ok=True)
            return True

        try:
            return await asyncio.to_thread(_delete)
        except OSError as exc:
            logger.exception("asset_delete_failed filename=%s", filename)
            raise StoreUnavailableError() from exc

    async def list_assets(self) -> List[StoredAsset]:
        def _collect() -> List[StoredAsset]:
            if not self.root_dir.exists():
                return []
            items = [self._describe(path) for path in self.root_dir.iterdir() if path.is_file()]
            items.sort(key=lambda item: item.filename)
            return items

        try:
            return await asyncio.to_thread(_collect)
        except OSError as exc:
            logger.exception("asset_list_failed root=%s", self.root_dir)
            raise StoreUnavailableError() from exc

    @staticmethod
    def _describe(path: Path) -> StoredAsset:
        stat = path.stat()
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return StoredAsset(
            filename=path.name,
            size=stat.st_size,
            modified_at=stat.st_mtime,
            mime_type=mime_type,
        )

    def _resolve_asset_path(self, filename: str) -> Path:
        candidate = filename.strip()
        if not candidate:
            raise APIError(422, "INVALID_PATH", "File name cannot be empty")

        relative = Path(candidate)
        if relative.is_absolute() or len(relative.parts) != 1:
            raise APIError(422, "INVALID_PATH", "Asset names must be bare file names")

        resolved = (self.root_dir / relative).resolve()
        try:
            resolved.relative_to(self.root_dir)
        except ValueError as exc:
            raise APIError(422, "INVALID_PATH", "Path escapes asset directory") from exc
        return resolved
