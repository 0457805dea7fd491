"""Phase 1: Find project files when no entry points are given."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

PROJECT_PATTERN = "*.*proj"

DEFAULT_IGNORE = {
    ".git", "bin", "obj", "node_modules", "packages", ".vs", ".idea",
    "TestResults", "__pycache__", ".venv", "venv",
}


def _should_ignore(name: str, ignore_set: set[str]) -> bool:
    """Check if a directory name matches ignore patterns."""
    if name.startswith("."):
        return True
    name = name.casefold()
    return any(fnmatch.fnmatchcase(name, pattern.casefold()) for pattern in ignore_set)


def discover_projects(root: str, exclude_patterns: list[str] | None = None) -> list[str]:
    """Return sorted absolute paths of project files beneath ``root``."""
    root_path = Path(root).resolve()
    if not root_path.is_dir():
        return []

    ignore_set = set(DEFAULT_IGNORE)
    ignore_set.update(exclude_patterns or [])

    found = []
    for dirpath, dirnames, filenames in os.walk(root_path):
        # Filter ignored directories in-place
        dirnames[:] = [
            d for d in sorted(dirnames)
            if not _should_ignore(d, ignore_set)
        ]

        for filename in sorted(filenames):
            if fnmatch.fnmatch(filename.lower(), PROJECT_PATTERN):
                found.append(os.path.join(dirpath, filename))

    logger.debug(f"Discovered {len(found)} project file(s) under {root_path}")
    return sorted(found)
