"""Phase 2: Walk project references and assemble the solution graph."""

from __future__ import annotations

import logging
import os

from solgen.config import NodeKind, SolutionNode, new_identifier
from solgen.dotnet.project import ProjectModelProvider
from solgen.errors import ProjectEvaluationError
from solgen.graph.solution_graph import SolutionGraph
from solgen.paths import is_within, normalize_key

logger = logging.getLogger(__name__)


class GraphAssembler:
    """Builds a deduplicated graph of projects and the folders holding them.

    The common root starts at the output directory and widens as folders
    are discovered. Once a folder outside every candidate root shows up,
    the common root is lost (None) for the rest of the run.
    """

    def __init__(self, provider: ProjectModelProvider, output_dir: str) -> None:
        self.provider = provider
        self.graph = SolutionGraph()
        self.common_root: str | None = os.path.abspath(output_dir)
        self.failures: list[ProjectEvaluationError] = []
        self._failed: set[str] = set()

    def add_project(self, path: str) -> None:
        """Add a project and, depth-first, everything it references."""
        path = os.path.abspath(path)
        key = normalize_key(path)
        if key in self.graph or key in self._failed:
            return

        try:
            model = self.provider.evaluate(path)
        except ProjectEvaluationError as e:
            logger.warning(f"Skipping {path}: {e}")
            self.failures.append(e)
            self._failed.add(key)
            return

        directory = os.path.dirname(path)
        parent_id = self._ensure_folder_chain(directory)

        identifier = model.identifier
        if identifier is None or self.graph.has_identifier(identifier):
            if identifier is not None:
                logger.warning(
                    f"ProjectGuid {identifier} of {path} is already in use; assigning a new one"
                )
            identifier = new_identifier()

        node = SolutionNode(
            identifier=identifier,
            name=os.path.basename(path),
            directory=directory,
            kind=NodeKind.PROJECT,
            parent_id=parent_id,
            platform=model.platform or "",
            references=model.references,
        )
        self.graph.add_node(key, node)
        logger.debug(f"Project: {node.name} ({identifier}) in {directory}")

        for reference in model.references:
            ref_path = os.path.normpath(os.path.join(directory, reference))
            self.add_project(ref_path)
            self.graph.add_reference(key, normalize_key(ref_path))

    def _ensure_folder_chain(self, directory: str) -> str | None:
        """Return the folder identifier for ``directory``, creating folders upward.

        Returns None for a filesystem or drive root, which never becomes a
        folder node.
        """
        key = normalize_key(directory)
        existing = self.graph.get(key)
        if existing is not None:
            return existing.identifier

        name = os.path.basename(directory)
        if not name:
            return None

        self._update_common_root(directory)
        parent_id = self._ensure_folder_chain(os.path.dirname(directory))

        folder = SolutionNode(
            identifier=new_identifier(),
            name=name,
            directory=os.path.dirname(directory),
            kind=NodeKind.FOLDER,
            parent_id=parent_id,
        )
        self.graph.add_node(key, folder)
        return folder.identifier

    def _update_common_root(self, directory: str) -> None:
        if self.common_root is None:
            return
        if is_within(self.common_root, directory):
            self.common_root = directory
        elif not is_within(directory, self.common_root):
            logger.info(f"{directory} is outside {self.common_root}; no common root")
            self.common_root = None

    def finalize(self) -> tuple[SolutionGraph, str | None]:
        return self.graph, self.common_root
