"""Sequential phase orchestrator with timing."""

from __future__ import annotations

import logging
import os
import time

from solgen.config import GenerationConfig, GenerationResult
from solgen.dotnet.project import MSBuildProjectProvider, ProjectModelProvider
from solgen.errors import EntryPointNotFound, NoProjectsFound
from solgen.output import write_solution
from solgen.phases.assembly import GraphAssembler
from solgen.phases.discovery import discover_projects

logger = logging.getLogger(__name__)

_PHASE_LABELS = {
    "discovery": "Finding project files",
    "assembly": "Resolving project references",
    "writing": "Writing solution file",
}


def _solution_file_name(directory: str, stem: str, suffix: str) -> str:
    return os.path.join(directory, f"{stem}{suffix}.sln")


def resolve_entry_points(config: GenerationConfig) -> list[str]:
    """Absolute entry-point paths: the given ones, or those discovered."""
    if not config.project_paths:
        return discover_projects(config.search_root, config.exclude_patterns)

    entry_points = []
    for raw in config.project_paths:
        path = os.path.abspath(raw)
        if not os.path.isfile(path):
            raise EntryPointNotFound(f"Project file not found: {raw}", raw)
        entry_points.append(path)
    return entry_points


def resolve_solution_path(config: GenerationConfig, entry_points: list[str]) -> str:
    """Where to write the solution.

    An explicit output path wins. Otherwise the solution sits next to the
    first explicit project, or the only discovered one, and takes its name;
    with several discovered projects it is named after the search root.
    """
    if config.output_path:
        return os.path.abspath(config.output_path)

    if config.project_paths or len(entry_points) == 1:
        first = entry_points[0]
        stem = os.path.splitext(os.path.basename(first))[0]
        return _solution_file_name(os.path.dirname(first), stem, config.solution_suffix)

    root = os.path.abspath(config.search_root)
    return _solution_file_name(root, os.path.basename(root), config.solution_suffix)


def run_pipeline(
    config: GenerationConfig,
    progress_callback=None,
    provider: ProjectModelProvider | None = None,
) -> GenerationResult:
    """Discover, assemble and write a solution; return what happened.

    Args:
        config: Generation configuration.
        progress_callback: Optional callable(phase_name, label) invoked
            when each phase starts. Used by the CLI for Rich progress.
        provider: Project evaluator; defaults to MSBuildProjectProvider.

    Raises:
        EntryPointNotFound, NoProjectsFound, OutputWriteError: fatal errors.
    """
    provider = provider or MSBuildProjectProvider()
    result = GenerationResult()
    timings: dict[str, float] = {}

    def start(name: str) -> float:
        if progress_callback:
            progress_callback(name, _PHASE_LABELS.get(name, name))
        return time.monotonic()

    began = start("discovery")
    entry_points = resolve_entry_points(config)
    if not entry_points:
        raise NoProjectsFound(
            f"No project files found under {os.path.abspath(config.search_root)}"
        )
    solution_path = resolve_solution_path(config, entry_points)
    timings["discovery"] = time.monotonic() - began

    began = start("assembly")
    assembler = GraphAssembler(provider, os.path.dirname(solution_path))
    for path in entry_points:
        assembler.add_project(path)
    graph, common_root = assembler.finalize()
    timings["assembly"] = time.monotonic() - began

    if graph.project_count() == 0:
        raise NoProjectsFound("None of the entry-point projects could be evaluated")

    cycles = graph.reference_cycles()
    for cycle in cycles:
        logger.warning(f"Reference cycle: {' -> '.join(cycle)}")

    began = start("writing")
    skipped = write_solution(
        graph, common_root, solution_path, config.effective_configurations()
    )
    timings["writing"] = time.monotonic() - began

    result.solution_path = solution_path
    result.project_count = graph.project_count()
    result.folder_count = graph.folder_count()
    result.common_root = common_root
    result.evaluation_errors = list(assembler.failures)
    result.skipped_entries = skipped
    result.reference_cycles = cycles
    result.phase_timings = timings
    return result
