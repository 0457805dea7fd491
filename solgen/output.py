"""Solution file serialisation."""

from __future__ import annotations

import logging
from pathlib import Path, PurePath

from solgen.config import BUILD_MODES, DEFAULT_BUILD_CONFIGURATIONS, SolutionNode
from solgen.dotnet.solution import (
    FOOTER_LINES,
    HEADER_LINES,
    SOLUTION_FOLDER_GUID,
    format_project_entry,
    project_type_guid,
    solution_platform,
)
from solgen.errors import (
    OutputWriteError,
    RelativePathUnresolvable,
    SolgenError,
    UnrecognizedProjectType,
)
from solgen.graph.solution_graph import SolutionGraph
from solgen.paths import relative_path, same_path

logger = logging.getLogger(__name__)


def _entry_lines(node: SolutionNode, solution_dir: str, flavour: type[PurePath]) -> list[str]:
    if node.is_folder:
        # Solution folders use their own identifier in the path slot
        return format_project_entry(SOLUTION_FOLDER_GUID, node.name, node.identifier, node.identifier)

    type_guid = project_type_guid(node.name)
    rel_path = relative_path(solution_dir, node.path, flavour)
    if rel_path is None:
        raise RelativePathUnresolvable(
            f"{node.path} has no path relative to {solution_dir}", node.path
        )
    return format_project_entry(type_guid, node.name, rel_path, node.identifier)


def render_solution(
    graph: SolutionGraph,
    common_root: str | None,
    output_path: str,
    build_configurations: list[str] | tuple[str, ...] = (),
    flavour: type[PurePath] = PurePath,
) -> tuple[list[str], list[SolgenError]]:
    """Render the solution text as lines, plus the entries that were skipped.

    Nodes are emitted in sorted key order. A node whose entry is skipped
    contributes no nesting line and no configuration rows.
    """
    configurations = list(build_configurations) or list(DEFAULT_BUILD_CONFIGURATIONS)
    solution_dir = str(flavour(output_path).parent)

    def at_root(path: str) -> bool:
        return common_root is not None and same_path(path, common_root, flavour)

    lines = list(HEADER_LINES)
    skipped: list[SolgenError] = []
    emitted: list[SolutionNode] = []

    for _, node in graph.items():
        if at_root(node.path):
            continue
        try:
            lines.extend(_entry_lines(node, solution_dir, flavour))
        except (UnrecognizedProjectType, RelativePathUnresolvable) as e:
            logger.warning(f"Omitting {node.path} from solution: {e}")
            skipped.append(e)
            continue
        emitted.append(node)

    emitted_ids = {node.identifier for node in emitted}

    # Project and folder relations
    lines.append("Global")
    lines.append("\tGlobalSection(NestedProjects) = preSolution")
    for node in emitted:
        if node.parent_id in emitted_ids and not at_root(node.directory):
            lines.append(f"\t\t{node.identifier} = {node.parent_id}")
    lines.append("\tEndGlobalSection")

    lines.append("\tGlobalSection(SolutionConfigurationPlatforms) = preSolution")
    for mode in BUILD_MODES:
        for config in configurations:
            lines.append(f"\t\t{mode}|{config} = {mode}|{config}")
    lines.append("\tEndGlobalSection")

    lines.append("\tGlobalSection(ProjectConfigurationPlatforms) = postSolution")
    for node in emitted:
        if node.is_folder:
            continue
        for mode in BUILD_MODES:
            for config in configurations:
                platform = solution_platform(config, node.platform)
                lines.append(f"\t\t{node.identifier}.{mode}|{config}.ActiveCfg = {mode}|{platform}")
                lines.append(f"\t\t{node.identifier}.{mode}|{config}.Build.0 = {mode}|{platform}")
    lines.extend(FOOTER_LINES)

    return lines, skipped


def write_solution(
    graph: SolutionGraph,
    common_root: str | None,
    output_path: str,
    build_configurations: list[str] | tuple[str, ...] = (),
) -> list[SolgenError]:
    """Write the solution file and return the entries that were skipped."""
    lines, skipped = render_solution(graph, common_root, output_path, build_configurations)

    try:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8", newline="\r\n") as f:
            for line in lines:
                f.write(line + "\n")
    except OSError as e:
        raise OutputWriteError(f"Failed to write {output_path}: {e}", output_path) from e

    logger.info(f"Wrote {output_path} ({len(lines)} lines, {len(skipped)} skipped)")
    return skipped
