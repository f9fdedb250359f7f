"""Pure domain logic for the shape of a resume document.

Documents are plain dicts with camelCase keys. Nothing here touches a store.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..contracts import PROTECTED_KEYS

# ---------------------------------------------------------------------------
# Default shape
# ---------------------------------------------------------------------------

BLANK_RECORDS: Dict[str, Dict[str, Any]] = {
    "workExperience": {
        "company": "",
        "role": "",
        "startDate": "",
        "endDate": "",
        "description": "",
    },
    "education": {
        "degree": "",
        "institution": "",
        "startDate": "",
        "endDate": "",
    },
    "skills": {"name": "", "progress": 0},
    "projects": {
        "title": "",
        "description": "",
        "github": "",
        "liveDemo": "",
    },
    "certifications": {"title": "", "issuer": "", "year": ""},
    "languages": {"name": "", "progress": 0},
}


def default_document(title: str) -> Dict[str, Any]:
    """Return the empty-but-defaulted body of a new resume.

    Every array section starts with one blank placeholder record and
    ``interests`` starts as ``[""]``.
    """
    document: Dict[str, Any] = {
        "title": title,
        "thumbnailUrl": None,
        "template": {"theme": "", "colorPalette": []},
        "profileInfo": {
            "profileImageUrl": None,
            "fullName": "",
            "designation": "",
            "summary": "",
        },
        "contactInfo": {
            "email": "",
            "phone": "",
            "location": "",
            "linkedin": "",
            "github": "",
            "website": "",
        },
    }
    for section, blank in BLANK_RECORDS.items():
        document[section] = [dict(blank)]
    document["interests"] = [""]
    return document


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def writable_fields(payload: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop keys a caller is never allowed to set directly."""
    return {key: copy.deepcopy(value) for key, value in (payload or {}).items() if key not in PROTECTED_KEYS}


def apply_patch(document: Mapping[str, Any], patch: Mapping[str, Any]) -> Dict[str, Any]:
    """Shallow merge *patch* onto *document*, returning a new dict.

    Each top-level key in *patch* replaces the stored value whole (arrays are
    not merged element-wise). ``profileInfo.profileImageUrl`` survives a
    replaced ``profileInfo`` because image slots only change through uploads.
    """
    merged = copy.deepcopy(dict(document))
    for key, value in writable_fields(patch).items():
        merged[key] = value

    if "profileInfo" in patch:
        stored_image = profile_image_url(document)
        profile = merged.get("profileInfo")
        if not isinstance(profile, dict):
            profile = {}
        profile["profileImageUrl"] = stored_image
        merged["profileInfo"] = profile
    return merged


# ---------------------------------------------------------------------------
# Asset references
# ---------------------------------------------------------------------------


def thumbnail_url(document: Mapping[str, Any]) -> Optional[str]:
    return document.get("thumbnailUrl") or None


def profile_image_url(document: Mapping[str, Any]) -> Optional[str]:
    profile = document.get("profileInfo")
    if not isinstance(profile, Mapping):
        return None
    return profile.get("profileImageUrl") or None


def slot_url(document: Mapping[str, Any], slot: str) -> Optional[str]:
    if slot == "thumbnail":
        return thumbnail_url(document)
    if slot == "profileImage":
        return profile_image_url(document)
    raise ValueError(f"Unknown asset slot: {slot}")


def set_slot_url(document: Dict[str, Any], slot: str, url: Optional[str]) -> None:
    """Point one image slot of *document* at *url* (in place)."""
    if slot == "thumbnail":
        document["thumbnailUrl"] = url
        return
    if slot == "profileImage":
        profile = document.get("profileInfo")
        if not isinstance(profile, dict):
            profile = {}
            document["profileInfo"] = profile
        profile["profileImageUrl"] = url
        return
    raise ValueError(f"Unknown asset slot: {slot}")


def asset_urls(document: Mapping[str, Any]) -> List[str]:
    return [url for url in (thumbnail_url(document), profile_image_url(document)) if url]


def filename_from_url(url: str) -> str:
    """Return the stored filename a public asset URL points at."""
    return url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]


def referenced_filenames(documents: Iterable[Mapping[str, Any]]) -> set[str]:
    names: set[str] = set()
    for document in documents:
        for url in asset_urls(document):
            name = filename_from_url(url)
            if name:
                names.add(name)
    return names
