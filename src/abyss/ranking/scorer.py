"""Combine the ranking signals into one relevance score per file.

    combined = w_h * heuristic + w_c * churn + w_pr * centrality + w_e * entropy

Centrality is a probability (it sums to 1 over the graph) and entropy is
normalized to [0, 1], hence their large default weights.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

import networkx as nx

from abyss.config import ScoreWeights, ScoringConfig
from abyss.context.models import FileNode, ScoreComponents
from abyss.git import GitStats
from abyss.ranking.centrality import compute_centrality
from abyss.ranking.churn import churn_score
from abyss.ranking.heuristics import heuristic_score

logger = logging.getLogger("abyss.ranking")


def combine(components: ScoreComponents, weights: ScoreWeights) -> float:
    """Weighted sum of the sub-scores."""
    return (
        weights.heuristic * components.heuristic
        + weights.churn * components.churn
        + weights.centrality * components.centrality
        + weights.entropy * components.entropy
    )


def score_nodes(
    nodes: Iterable[FileNode],
    graph: nx.DiGraph,
    git_stats: Mapping[str, GitStats] | None = None,
    config: ScoringConfig | None = None,
) -> list[FileNode]:
    """Score every node, returning new nodes sorted by path.

    Nodes missing from `graph` get zero centrality.
    """
    config = config or ScoringConfig()
    git_stats = git_stats or {}
    centrality = compute_centrality(graph, config)

    scored: list[FileNode] = []
    for node in sorted(nodes, key=lambda n: n.path):
        components = ScoreComponents(
            centrality=centrality.get(node.path, 0.0),
            entropy=node.entropy,
            churn=churn_score(git_stats.get(node.path), config),
            heuristic=float(heuristic_score(node.path, config)),
        )
        components.combined = combine(components, config.weights)
        scored.append(
            node.model_copy(update={"components": components, "score": components.combined})
        )

    logger.debug("Scored %d files", len(scored))
    return scored
