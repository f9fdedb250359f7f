"""Resume Builder Domain - Pure logic over resume documents.

This package contains pure functions with no store or file system dependencies.
"""

from .completion import CompletionResult, completion_breakdown, score
from .resume_document import (
    apply_patch,
    default_document,
    filename_from_url,
    referenced_filenames,
    set_slot_url,
    slot_url,
    writable_fields,
)

__all__ = [
    # Completion
    "score",
    "completion_breakdown",
    "CompletionResult",
    # Document shape
    "default_document",
    "writable_fields",
    "apply_patch",
    "slot_url",
    "set_slot_url",
    "filename_from_url",
    "referenced_filenames",
]
