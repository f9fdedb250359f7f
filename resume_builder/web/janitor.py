"""Reconciliation pass that removes image files no resume references."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from ..contracts import DEFAULT_ORPHAN_GRACE_SECONDS
from ..domain import referenced_filenames
from .asset_storage import AssetStore
from .document_store import DocumentStore
from .errors import APIError

logger = logging.getLogger("resume_builder.assets")


class AssetJanitor:
    """Collects files orphaned by failed persists, cancelled uploads or
    cleanup failures.

    Files younger than the grace period are kept: an upload between its
    store-write and its persist is unreferenced for a short while.
    """

    def __init__(
        self,
        asset_store: AssetStore,
        document_store: DocumentStore,
        grace_seconds: int = DEFAULT_ORPHAN_GRACE_SECONDS,
        interval_seconds: int = 0,
    ) -> None:
        self._assets = asset_store
        self._store = document_store
        self.grace_seconds = max(grace_seconds, 0)
        self.interval_seconds = max(interval_seconds, 0)
        self._stop_requested = False
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the periodic sweep when an interval is configured."""
        if self._task is None and self.interval_seconds > 0:
            self._stop_requested = False
            self._task = asyncio.create_task(self._sweep_worker())

    async def stop(self) -> None:
        self._stop_requested = True
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def sweep(self) -> Dict[str, int]:
        """Delete unreferenced files older than the grace period."""
        records = await self._store.find_many()
        referenced = referenced_filenames(record.document for record in records)
        assets = await self._assets.list_assets()
        cutoff = datetime.now(timezone.utc).timestamp() - self.grace_seconds

        removed = 0
        for asset in assets:
            if asset.filename in referenced or asset.modified_at > cutoff:
                continue
            if await self._assets.delete(asset.filename):
                removed += 1
                logger.info("orphan_removed filename=%s size=%s", asset.filename, asset.size)

        return {"scanned": len(assets), "removed": removed}

    async def _sweep_worker(self) -> None:
        while not self._stop_requested:
            await asyncio.sleep(self.interval_seconds)
            if self._stop_requested:
                break
            try:
                result = await self.sweep()
            except APIError as exc:
                logger.warning("orphan_sweep_failed error=%s", exc.code)
                continue
            logger.info("orphan_sweep scanned=%s removed=%s", result["scanned"], result["removed"])
