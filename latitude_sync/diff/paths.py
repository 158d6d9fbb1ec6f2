"""Prompt path normalization."""

from __future__ import annotations

import re

_SLASH_RUN_RE = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
    """Trim, collapse repeated slashes, and strip leading/trailing slashes.

    >>> normalize_path(" /a//b/ ")
    'a/b'
    """
    return _SLASH_RUN_RE.sub("/", path.strip()).strip("/")
