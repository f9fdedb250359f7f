"""Pure domain logic for resume completion scoring.

The score is derived on read and never stored.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PROFILE_FIELDS: Tuple[str, ...] = ("fullName", "designation", "summary")
CONTACT_FIELDS: Tuple[str, ...] = ("email", "phone")

# Text fields counted per record, and the "progress" fields counted when > 0.
# The per-record weight is the total number of fields listed for a section.
SECTION_FIELDS: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    "workExperience": (("company", "role", "startDate", "endDate", "description"), ()),
    "education": (("degree", "institution", "startDate", "endDate"), ()),
    "skills": (("name",), ("progress",)),
    "projects": (("title", "description", "github", "liveDemo"), ()),
    "certifications": (("title", "issuer", "year"), ()),
    "languages": (("name",), ("progress",)),
}


@dataclass(frozen=True)
class CompletionResult:
    """Per-section ``(completed, total)`` counts plus the final percentage."""

    percentage: int
    completed: int
    total: int
    sections: Dict[str, Tuple[int, int]] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def score(document: Mapping[str, Any]) -> int:
    """Return the completion percentage (0-100) of *document*."""
    return completion_breakdown(document).percentage


def completion_breakdown(document: Mapping[str, Any]) -> CompletionResult:
    """Count filled fields of *document* section by section.

    Profile and contact always contribute fixed slots; each array record adds
    its section weight; each interest adds one slot. *document* is not mutated.
    """
    sections: Dict[str, Tuple[int, int]] = {
        "profileInfo": _count_fields(document.get("profileInfo"), PROFILE_FIELDS, ()),
        "contactInfo": _count_fields(document.get("contactInfo"), CONTACT_FIELDS, ()),
    }

    for section, (text_fields, progress_fields) in SECTION_FIELDS.items():
        completed = total = 0
        for record in _as_list(document.get(section)):
            done, slots = _count_fields(record, text_fields, progress_fields)
            completed += done
            total += slots
        sections[section] = (completed, total)

    interests = _as_list(document.get("interests"))
    sections["interests"] = (sum(1 for item in interests if _has_text(item)), len(interests))

    completed = sum(done for done, _ in sections.values())
    total = sum(slots for _, slots in sections.values())
    return CompletionResult(
        percentage=_percentage(completed, total),
        completed=completed,
        total=total,
        sections=sections,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _count_fields(
    record: Any,
    text_fields: Tuple[str, ...],
    progress_fields: Tuple[str, ...],
) -> Tuple[int, int]:
    total = len(text_fields) + len(progress_fields)
    if not isinstance(record, Mapping):
        return 0, total
    completed = sum(1 for name in text_fields if _has_text(record.get(name)))
    completed += sum(1 for name in progress_fields if _positive(record.get(name)))
    return completed, total


def _has_text(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (int, float)):
        return value != 0
    return bool(value)


def _positive(value: Any) -> bool:
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (int, float)):
        return value > 0
    if isinstance(value, str):
        try:
            return float(value.strip()) > 0
        except ValueError:
            return False
    return False


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _percentage(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    # Half-up rounding; round() would send 12.5 to 12.
    return int(math.floor(100 * completed / total + 0.5))
