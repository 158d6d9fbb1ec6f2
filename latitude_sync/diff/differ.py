"""Content-hash differ between local prompts and a remote version."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Union

from latitude_sync.diff.hashing import compute_hash
from latitude_sync.diff.models import AppendPlan, ChangeSummary, Document, DocumentChange
from latitude_sync.diff.paths import normalize_path

logger = logging.getLogger(__name__)

IncomingDocument = Union[tuple[str, str], Mapping[str, str], Document]


def as_pair(item: IncomingDocument) -> tuple[str, str]:
    """Coerce an incoming item into a (path, content) pair."""
    if isinstance(item, Document):
        return item.path, item.content
    if isinstance(item, Mapping):
        return item["path"], item.get("content", "")
    path, content = item
    return path, content


def _collect_incoming(incoming: Iterable[IncomingDocument]) -> dict[str, str]:
    """Normalized path -> content. Later duplicates overwrite earlier ones."""
    collected: dict[str, str] = {}
    for item in incoming:
        path, content = as_pair(item)
        key = normalize_path(path)
        if not key:
            raise ValueError(f"Invalid prompt path: {path!r}")
        collected[key] = content
    return collected


def _index_existing(existing: Iterable[Document]) -> dict[str, Document]:
    """Normalized path -> stored document (first occurrence wins)."""
    index: dict[str, Document] = {}
    for doc in existing:
        index.setdefault(normalize_path(doc.path), doc)
    return index


class DocumentDiffer:
    """Computes the changes needed to make a remote version match local prompts."""

    @staticmethod
    def diff(
        incoming: Iterable[IncomingDocument],
        existing: Iterable[Document],
    ) -> list[DocumentChange]:
        """Compare *incoming* against *existing* and return the changes.

        Added and modified entries come first, in input order, followed by
        deletions in existing order. Unchanged documents are omitted.
        Modifications and deletions address the stored (un-normalized) path.
        """
        wanted = _collect_incoming(incoming)
        stored = _index_existing(existing)
        changes: list[DocumentChange] = []

        for key, content in wanted.items():
            doc = stored.get(key)
            content_hash = compute_hash(content)
            if doc is None:
                changes.append(
                    DocumentChange(
                        path=key, content=content, status="added", content_hash=content_hash
                    )
                )
            elif doc.hash != content_hash:
                changes.append(
                    DocumentChange(
                        path=doc.path, content=content, status="modified", content_hash=content_hash
                    )
                )

        for key, doc in stored.items():
            if key not in wanted:
                changes.append(DocumentChange(path=doc.path, content="", status="deleted"))

        logger.debug(
            "diff: %d incoming, %d existing, %d change(s)", len(wanted), len(stored), len(changes)
        )
        return changes

    @staticmethod
    def append(
        incoming: Iterable[IncomingDocument],
        existing: Iterable[Document],
        *,
        overwrite: bool = False,
    ) -> AppendPlan:
        """Additive variant of :meth:`diff` that never deletes.

        Prompts already present remotely are skipped unless *overwrite* is
        set, in which case they are emitted as ``modified`` when their
        content hash differs.
        """
        wanted = _collect_incoming(incoming)
        stored = _index_existing(existing)
        plan = AppendPlan()

        for key, content in wanted.items():
            doc = stored.get(key)
            content_hash = compute_hash(content)
            if doc is None:
                plan.changes.append(
                    DocumentChange(
                        path=key, content=content, status="added", content_hash=content_hash
                    )
                )
            elif not overwrite:
                plan.skipped.append(doc.path)
            elif doc.hash != content_hash:
                plan.changes.append(
                    DocumentChange(
                        path=doc.path, content=content, status="modified", content_hash=content_hash
                    )
                )
        return plan


def summarize(changes: Iterable[DocumentChange]) -> ChangeSummary:
    """Group change paths by status, preserving order. Unchanged entries are dropped."""
    summary = ChangeSummary()
    for change in changes:
        if change.status == "added":
            summary.added.append(change.path)
        elif change.status == "modified":
            summary.modified.append(change.path)
        elif change.status == "deleted":
            summary.deleted.append(change.path)
    return summary
