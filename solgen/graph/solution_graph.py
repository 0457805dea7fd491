"""In-memory solution graph backed by networkx.DiGraph."""

from __future__ import annotations

import networkx as nx

from solgen.config import NodeKind, SolutionNode

CONTAINS = "CONTAINS"
REFERENCES = "REFERENCES"


class SolutionGraph:
    """Projects and folders keyed by normalised absolute path.

    Folder nodes own a CONTAINS edge to each child; project nodes carry
    REFERENCES edges to the projects they reference (diagnostic only).
    """

    def __init__(self) -> None:
        self.graph = nx.DiGraph()
        self._by_identifier: dict[str, str] = {}

    # --- Node addition ---

    def add_node(self, key: str, node: SolutionNode) -> bool:
        """Add a node under ``key``. Returns False if the key already exists."""
        if key in self.graph:
            return False
        if node.identifier in self._by_identifier:
            raise ValueError(f"Duplicate identifier {node.identifier} for {key}")
        if node.parent_id is not None and node.parent_id not in self._by_identifier:
            raise ValueError(f"Unknown parent folder {node.parent_id} for {key}")

        self.graph.add_node(key, node_type=node.kind.value, node=node)
        self._by_identifier[node.identifier] = key
        if node.parent_id is not None:
            self.graph.add_edge(self._by_identifier[node.parent_id], key, edge_type=CONTAINS)
        return True

    def add_reference(self, from_key: str, to_key: str) -> None:
        if from_key in self.graph and to_key in self.graph:
            self.graph.add_edge(from_key, to_key, edge_type=REFERENCES)

    # --- Queries ---

    def __contains__(self, key: str) -> bool:
        return key in self.graph

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    def get(self, key: str) -> SolutionNode | None:
        if key not in self.graph:
            return None
        return self.graph.nodes[key]["node"]

    def key_for(self, identifier: str) -> str | None:
        return self._by_identifier.get(identifier)

    def has_identifier(self, identifier: str) -> bool:
        return identifier in self._by_identifier

    def items(self) -> list[tuple[str, SolutionNode]]:
        """All (key, node) pairs sorted by key; folders precede their contents."""
        return sorted(
            ((key, data["node"]) for key, data in self.graph.nodes(data=True)),
            key=lambda pair: pair[0],
        )

    def folders(self) -> list[SolutionNode]:
        return [node for _, node in self.items() if node.kind is NodeKind.FOLDER]

    def parent_chain(self, key: str) -> list[SolutionNode]:
        """Folder nodes from the node's parent up to the topmost folder."""
        chain = []
        node = self.get(key)
        while node is not None and node.parent_id is not None:
            parent_key = self._by_identifier[node.parent_id]
            node = self.get(parent_key)
            chain.append(node)
        return chain

    def references_of(self, key: str) -> list[str]:
        return [
            target
            for _, target, data in self.graph.out_edges(key, data=True)
            if data.get("edge_type") == REFERENCES
        ]

    def reference_cycles(self) -> list[list[str]]:
        """Cycles among project references, as lists of node keys."""
        view = nx.subgraph_view(
            self.graph,
            filter_edge=lambda u, v: self.graph.edges[u, v].get("edge_type") == REFERENCES,
        )
        return [sorted(cycle) for cycle in nx.simple_cycles(view)]

    def project_count(self) -> int:
        return sum(1 for _, d in self.graph.nodes(data=True) if d.get("node_type") == "project")

    def folder_count(self) -> int:
        return sum(1 for _, d in self.graph.nodes(data=True) if d.get("node_type") == "folder")
