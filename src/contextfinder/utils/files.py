"""Utility helpers for working with files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

LOGGER = logging.getLogger(__name__)

MAX_DEPTH = 10
MARKDOWN_SUFFIX = ".md"


def is_eligible(path: Path) -> bool:
    """Lowercase ``.md`` files not hidden behind a leading underscore."""
    return not path.name.startswith("_") and path.suffix == MARKDOWN_SUFFIX


def iter_markdown_paths(root: Path, *, max_depth: int = MAX_DEPTH) -> Iterator[Path]:
    """Yield eligible Markdown files under *root*.

    Walks an explicit worklist of ``(directory, depth)`` pairs. Directories
    deeper than *max_depth* are reported and skipped without affecting their
    siblings. Symlinks are not followed.
    """
    root = Path(root)
    if root.is_file():
        if is_eligible(root):
            yield root
        return

    stack: List[Tuple[Path, int]] = [(root, 0)]
    while stack:
        directory, depth = stack.pop()
        if depth > max_depth:
            LOGGER.warning(
                "Maximum directory depth %s exceeded at %s, skipping subtree", max_depth, directory
            )
            continue

        try:
            entries = sorted(directory.iterdir())
        except OSError as exc:
            LOGGER.warning("Cannot read directory %s: %s", directory, exc)
            continue

        subdirs: List[Path] = []
        for entry in entries:
            if entry.is_symlink():
                continue
            if entry.is_dir():
                subdirs.append(entry)
            elif entry.is_file() and is_eligible(entry):
                yield entry

        # Reversed so the first subdirectory is popped next.
        for subdir in reversed(subdirs):
            stack.append((subdir, depth + 1))


def generate_document_id(path: Path, root: Optional[Path] = None) -> str:
    """Build a stable document id from the path relative to *root*.

    ``projects/foo/rules/x.md`` becomes ``projects_foo_rules_x``.
    """
    path = Path(path)
    relative = path
    if root is not None:
        try:
            relative = path.relative_to(root)
        except ValueError:
            relative = path

    if relative.suffix == MARKDOWN_SUFFIX:
        relative = relative.with_suffix("")
    parts = [part for part in relative.parts if part != relative.anchor]
    return "_".join(parts)
