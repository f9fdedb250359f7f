"""Shared constants/types for the resume document and web API contracts."""

from __future__ import annotations

from typing import Final, Literal, TypeAlias

AssetSlot: TypeAlias = Literal["thumbnail", "profileImage"]

ASSET_SLOTS: Final[tuple[AssetSlot, ...]] = ("thumbnail", "profileImage")
DEFAULT_ALLOWED_IMAGE_MIME_TYPES: Final[tuple[str, ...]] = (
    "image/jpeg",
    "image/png",
    "image/jpg",
)
IMAGE_EXTENSIONS: Final[dict[str, str]] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
}
DEFAULT_MAX_UPLOAD_BYTES: Final[int] = 5 * 1024 * 1024
DEFAULT_ASSET_MOUNT_PATH: Final[str] = "uploads"
DEFAULT_ORPHAN_GRACE_SECONDS: Final[int] = 3600
# Conditional writes retried after a concurrent version bump.
MAX_WRITE_ATTEMPTS: Final[int] = 5

# Keys owned by the store or by the asset lifecycle; callers cannot write them.
PROTECTED_KEYS: Final[frozenset[str]] = frozenset(
    {"id", "ownerId", "createdAt", "updatedAt", "version", "thumbnailUrl", "completion"}
)
ARRAY_SECTIONS: Final[tuple[str, ...]] = (
    "workExperience",
    "education",
    "skills",
    "projects",
    "certifications",
    "languages",
)
