"""Read local prompt files into (path, content) pairs and write pulled documents back."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from latitude_sync.diff.models import Document
from latitude_sync.diff.paths import normalize_path

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".promptl", ".md", ".txt")


def _prompt_name(rel: Path, extensions: Sequence[str]) -> str:
    """Prompt path for a file: its relative POSIX path minus a known extension."""
    if rel.suffix in extensions:
        rel = rel.with_suffix("")
    return rel.as_posix()


def _with_prefix(name: str, prefix: str | None) -> str:
    if not prefix:
        return name
    return normalize_path(f"{prefix}/{name}")


def scan_directory(directory: str | Path, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> list[Path]:
    """Recursively list prompt files under *directory*, sorted."""
    root = Path(directory).resolve()
    if not root.is_dir():
        raise FileNotFoundError(f"Directory not found: {root}")
    return sorted(p for p in root.rglob("*") if p.is_file() and p.suffix in extensions)


def read_prompt_files(
    paths: Iterable[str | Path] | None = None,
    directory: str | Path | None = None,
    *,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    prefix: str | None = None,
) -> list[tuple[str, str]]:
    """Load prompts from explicit *paths* or from every prompt file under *directory*.

    Files from a directory keep their sub-directory in the prompt path
    (``prompts/support/triage.promptl`` -> ``support/triage``); explicitly
    listed files use their bare name.
    """
    if directory is not None:
        root = Path(directory).resolve()
        files = scan_directory(root, extensions)
        logger.debug("Found %d prompt file(s) in %s", len(files), root)
        entries = [(_prompt_name(f.relative_to(root), extensions), f) for f in files]
    elif paths is not None:
        entries = []
        for p in paths:
            fpath = Path(p).resolve()
            if not fpath.is_file():
                raise FileNotFoundError(f"File not found: {fpath}")
            entries.append((_prompt_name(Path(fpath.name), extensions), fpath))
    else:
        raise ValueError("Either paths or directory must be provided")

    return [
        (_with_prefix(name, prefix), fpath.read_text(encoding="utf-8"))
        for name, fpath in entries
    ]


def write_prompt_files(
    documents: Iterable[Document],
    directory: str | Path,
    *,
    extension: str = ".promptl",
) -> list[Path]:
    """Write each document to ``<directory>/<path><extension>``.

    Returns the written paths in input order.
    """
    root = Path(directory).resolve()
    written: list[Path] = []
    for doc in documents:
        rel = normalize_path(doc.path)
        dest = root / f"{rel}{extension}"
        # Guard against path traversal escaping root
        if not rel or not dest.resolve().is_relative_to(root):
            raise ValueError(f"Document path escapes output directory: {doc.path!r}")
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(doc.content, encoding="utf-8")
        logger.info("wrote %s (%d bytes)", dest, len(doc.content))
        written.append(dest)
    return written
