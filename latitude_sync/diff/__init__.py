"""Change detection between local prompts and a remote version."""

from latitude_sync.diff.differ import DocumentDiffer, summarize
from latitude_sync.diff.hashing import compute_hash
from latitude_sync.diff.models import (
    AppendPlan,
    ChangeStatus,
    ChangeSummary,
    Document,
    DocumentChange,
)
from latitude_sync.diff.paths import normalize_path


def diff(*args, **kwargs) -> list[DocumentChange]:
    """Convenience wrapper around DocumentDiffer.diff()."""
    return DocumentDiffer.diff(*args, **kwargs)


__all__ = [
    "AppendPlan",
    "ChangeStatus",
    "ChangeSummary",
    "Document",
    "DocumentChange",
    "DocumentDiffer",
    "compute_hash",
    "diff",
    "normalize_path",
    "summarize",
]
