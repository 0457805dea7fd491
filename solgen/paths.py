"""Path helpers shared by the assembler and the solution writer.

Comparisons are segment based and case-insensitive, the way Visual Studio
treats paths inside a solution. The ``flavour`` argument selects the path
syntax (``PurePosixPath`` / ``PureWindowsPath``); it defaults to the host's.
"""

from __future__ import annotations

import os
from pathlib import PurePath

SOLUTION_SEPARATOR = "\\"


def normalize_key(path: str) -> str:
    """Return the graph key for a path: absolute, normalised, host-cased."""
    return os.path.normcase(os.path.abspath(path))


def _folded_parts(path: str, flavour: type[PurePath]) -> list[str]:
    return [part.casefold() for part in flavour(path).parts]


def is_within(path: str, parent: str, flavour: type[PurePath] = PurePath) -> bool:
    """True when ``path`` equals ``parent`` or lies beneath it."""
    parts = _folded_parts(path, flavour)
    parent_parts = _folded_parts(parent, flavour)
    return parts[: len(parent_parts)] == parent_parts


def same_path(a: str, b: str, flavour: type[PurePath] = PurePath) -> bool:
    return _folded_parts(a, flavour) == _folded_parts(b, flavour)


def relative_path(
    from_dir: str, to_path: str, flavour: type[PurePath] = PurePath
) -> str | None:
    """Express ``to_path`` relative to the directory ``from_dir``.

    Returns the path with solution-style separators, or None when the two
    paths share no leading segment (e.g. different drives).
    """
    from_parts = flavour(from_dir).parts
    to_parts = flavour(to_path).parts

    if is_within(to_path, from_dir, flavour):
        return SOLUTION_SEPARATOR.join(to_parts[len(from_parts):])

    common = 0
    for a, b in zip(from_parts, to_parts):
        if a.casefold() != b.casefold():
            break
        common += 1

    if common == 0:
        return None

    segments = [".."] * (len(from_parts) - common)
    segments.extend(to_parts[common:])
    return SOLUTION_SEPARATOR.join(segments)
