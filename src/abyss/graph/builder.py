"""Build the file-level dependency graph from extracted references."""

from __future__ import annotations

import logging
from typing import Iterable

import networkx as nx

from abyss.context.models import FileNode
from abyss.graph.resolver import ModuleResolver

logger = logging.getLogger("abyss.graph")


class GraphBuilder:
    """Builds a directed dependency graph over files.

    Nodes are file paths. An edge A -> B means a reference extracted from A
    is satisfied by B. Cycles are allowed; self-edges never are.
    """

    def __init__(self) -> None:
        self.graph = nx.DiGraph()
        self._unresolved: list[tuple[str, str]] = []

    def build(self, nodes: Iterable[FileNode]) -> nx.DiGraph:
        """Build the graph from a complete set of file nodes.

        Returns:
            The constructed NetworkX directed graph.
        """
        # Reset state so reusing a builder doesn't accumulate stale data
        self.graph = nx.DiGraph()
        self._unresolved = []

        nodes = sorted(nodes, key=lambda n: n.path)
        resolver = ModuleResolver(
            (n.path for n in nodes),
            {n.path: n.defined for n in nodes},
        )

        for node in nodes:
            self.graph.add_node(
                node.path,
                language=node.language,
                tokens=node.tokens,
                defined_count=len(node.defined),
                reference_count=len(node.referenced),
            )

        for node in nodes:
            for ref in sorted(node.referenced):
                targets = resolver.resolve(ref, node.path, node.language)
                if not targets:
                    self._unresolved.append((node.path, ref))
                    continue
                for target in targets:
                    if target == node.path or self.graph.has_edge(node.path, target):
                        continue
                    self.graph.add_edge(node.path, target, reference=ref)

        if self._unresolved:
            logger.debug("Dropped %d unresolved references", len(self._unresolved))
        return self.graph

    @property
    def unresolved(self) -> list[tuple[str, str]]:
        """(file, reference) pairs that matched no file in the scan."""
        return list(self._unresolved)

    def get_stats(self) -> dict:
        """Get graph statistics."""
        languages: dict[str, int] = {}
        for _, data in self.graph.nodes(data=True):
            lang = data.get("language") or "unknown"
            languages[lang] = languages.get(lang, 0) + 1

        cyclic = [c for c in nx.strongly_connected_components(self.graph) if len(c) > 1]

        return {
            "files": self.graph.number_of_nodes(),
            "edges": self.graph.number_of_edges(),
            "isolated": nx.number_of_isolates(self.graph),
            "cycles": len(cyclic),
            "languages": languages,
            "unresolved_refs": len(self._unresolved),
        }


def build_graph(nodes: Iterable[FileNode]) -> nx.DiGraph:
    """Convenience wrapper around GraphBuilder.build."""
    return GraphBuilder().build(nodes)
