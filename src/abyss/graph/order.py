"""Dependency-respecting, relevance-prioritized file ordering.

A file that defines something is emitted before the files referencing it.
Among the files whose dependencies have all been emitted, the highest-scoring
one goes next (ties broken by path).

Cycles are broken heuristically: when nothing is ready, the strongly connected
components of the remaining files are computed, and among the components that
depend on no other remaining component, the highest-scoring member is emitted
first with its in-cycle references treated as satisfied. Cyclic imports have
no universally correct linear order, so this is a best effort, not a guarantee.
"""

from __future__ import annotations

import heapq
import logging
from typing import Mapping

import networkx as nx

from abyss.context.models import CycleNotice, OrderedSequence

logger = logging.getLogger("abyss.graph")


def topological_order(graph: nx.DiGraph, scores: Mapping[str, float]) -> OrderedSequence:
    """Order every node of `graph`; edge A -> B places B before A."""

    def key(node: str) -> tuple[float, str]:
        return (-scores.get(node, 0.0), node)

    pending: dict[str, set[str]] = {n: set(graph.successors(n)) for n in graph.nodes}
    heap = [key(n) for n, deps in pending.items() if not deps]
    heapq.heapify(heap)

    order: list[str] = []
    emitted: set[str] = set()
    cycles: list[CycleNotice] = []

    def emit(node: str) -> None:
        order.append(node)
        emitted.add(node)
        for dependent in graph.predecessors(node):
            deps = pending[dependent]
            if node in deps:
                deps.discard(node)
                if not deps and dependent not in emitted:
                    heapq.heappush(heap, key(dependent))

    total = graph.number_of_nodes()
    while len(order) < total:
        if heap:
            _, node = heapq.heappop(heap)
            if node not in emitted:
                emit(node)
            continue

        notice = _break_cycle(graph, emitted, key)
        cycles.append(notice)
        logger.info("Breaking %s", notice.message)
        emit(notice.broken_at)

    return OrderedSequence(paths=order, cycles=cycles)


def _break_cycle(graph: nx.DiGraph, emitted: set[str], key) -> CycleNotice:
    """Pick the member to emit first from a cycle blocking all progress."""
    remaining = graph.subgraph(n for n in graph.nodes if n not in emitted)
    condensed = nx.condensation(remaining)

    # Components with no dependency on another remaining component
    ready = [
        condensed.nodes[c]["members"]
        for c in condensed.nodes
        if condensed.out_degree(c) == 0
    ]
    candidates = [member for members in ready for member in members]
    chosen = min(candidates, key=key)
    members = next(m for m in ready if chosen in m)
    return CycleNotice(members=sorted(members), broken_at=chosen)
