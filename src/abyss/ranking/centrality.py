"""PageRank-style centrality over the file dependency graph.

An edge A -> B (A references B) is a vote for B, so files many others depend
on rank high. Scores start uniform at 1/N and are iterated until the largest
change drops below the tolerance or the iteration cap is hit. Rank held by
files with no outgoing edges is not redistributed, so an isolated file settles
at the baseline (1 - d) / N.
"""

from __future__ import annotations

from typing import Mapping

import networkx as nx

from abyss.config import ScoringConfig


def pagerank_step(
    graph: nx.DiGraph,
    scores: Mapping[str, float],
    damping: float,
) -> dict[str, float]:
    """One PageRank iteration. Pure: returns a new mapping."""
    n = graph.number_of_nodes()
    base = (1.0 - damping) / n
    new_scores: dict[str, float] = {}
    for node in graph.nodes:
        incoming = 0.0
        for voter in graph.predecessors(node):
            incoming += scores[voter] / graph.out_degree(voter)
        new_scores[node] = base + damping * incoming
    return new_scores


def compute_centrality(graph: nx.DiGraph, config: ScoringConfig | None = None) -> dict[str, float]:
    """PageRank score per file."""
    config = config or ScoringConfig()
    n = graph.number_of_nodes()
    if n == 0:
        return {}

    # Read-only snapshot; every step builds a fresh mapping from it
    snapshot = nx.freeze(graph.copy())
    scores = {node: 1.0 / n for node in snapshot.nodes}

    for _ in range(config.max_iterations):
        new_scores = pagerank_step(snapshot, scores, config.damping)
        delta = max(abs(new_scores[node] - scores[node]) for node in scores)
        scores = new_scores
        if delta < config.tolerance:
            break

    return scores
