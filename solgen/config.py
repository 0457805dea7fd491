"""Core data types and configuration for solution generation."""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass, field
from enum import Enum

from solgen.errors import SolgenError

DEFAULT_BUILD_CONFIGURATIONS = ("Any CPU",)
BUILD_MODES = ("Debug", "Release")


class NodeKind(str, Enum):
    PROJECT = "project"
    FOLDER = "folder"


def new_identifier() -> str:
    """Return a fresh identifier in the braced, upper-case GUID form."""
    return "{" + str(uuid.uuid4()).upper() + "}"


def format_identifier(value: str) -> str | None:
    """Normalise a GUID string to ``{XXXXXXXX-...}`` form, or None if invalid."""
    try:
        parsed = uuid.UUID(value.strip())
    except (ValueError, AttributeError):
        return None
    return "{" + str(parsed).upper() + "}"


@dataclass(frozen=True)
class ProjectModel:
    """Evaluated view of a project file, as returned by a provider."""
    path: str
    identifier: str | None = None
    platform: str | None = None
    references: tuple[str, ...] = ()


@dataclass(frozen=True)
class SolutionNode:
    """A project or synthetic folder in the solution graph."""
    identifier: str
    name: str
    directory: str
    kind: NodeKind
    parent_id: str | None = None
    platform: str = ""
    references: tuple[str, ...] = ()

    @property
    def path(self) -> str:
        return os.path.join(self.directory, self.name)

    @property
    def is_folder(self) -> bool:
        return self.kind is NodeKind.FOLDER


@dataclass
class GenerationConfig:
    project_paths: list[str] = field(default_factory=list)
    search_root: str = "."
    output_path: str | None = None
    build_configurations: list[str] = field(default_factory=list)
    solution_suffix: str = ""
    exclude_patterns: list[str] = field(default_factory=list)
    verbose: bool = False
    quiet: bool = False

    def effective_configurations(self) -> list[str]:
        """Configured build configurations, falling back to ``Any CPU``."""
        configs = [c.strip() for c in self.build_configurations if c.strip()]
        return configs or list(DEFAULT_BUILD_CONFIGURATIONS)


@dataclass
class GenerationResult:
    solution_path: str = ""
    project_count: int = 0
    folder_count: int = 0
    common_root: str | None = None
    evaluation_errors: list[SolgenError] = field(default_factory=list)
    skipped_entries: list[SolgenError] = field(default_factory=list)
    reference_cycles: list[list[str]] = field(default_factory=list)
    phase_timings: dict[str, float] = field(default_factory=dict)

    @property
    def recovered(self) -> bool:
        """True when non-fatal failures left the solution incomplete."""
        return bool(self.evaluation_errors or self.skipped_entries)
