"""Error taxonomy for solution generation.

Errors marked fatal abort the run; the rest are recorded on the
``GenerationResult`` and the run carries on.
"""

from __future__ import annotations


class SolgenError(Exception):
    """Base class for all solgen errors."""

    fatal = False

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class ProjectEvaluationError(SolgenError):
    """A project file could not be read or evaluated."""


class RelativePathUnresolvable(SolgenError):
    """A node cannot be expressed relative to the solution directory."""


class UnrecognizedProjectType(SolgenError):
    """A project file extension has no known solution type GUID."""


class EntryPointNotFound(SolgenError):
    fatal = True


class NoProjectsFound(SolgenError):
    fatal = True


class OutputWriteError(SolgenError):
    """Writing the solution file failed; the underlying OSError is chained."""

    fatal = True
