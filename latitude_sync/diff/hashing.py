"""Content fingerprints for change detection."""

from __future__ import annotations

import hashlib


def compute_hash(content: str) -> str:
    """Full SHA-256 hex digest of the UTF-8 encoded *content*."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
