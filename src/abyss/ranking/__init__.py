"""Relevance signals and the combined file score."""

from abyss.ranking.centrality import compute_centrality, pagerank_step
from abyss.ranking.churn import churn_score
from abyss.ranking.entropy import normalized_entropy, shannon_entropy
from abyss.ranking.heuristics import heuristic_score
from abyss.ranking.scorer import combine, score_nodes

__all__ = [
    "churn_score",
    "combine",
    "compute_centrality",
    "heuristic_score",
    "normalized_entropy",
    "pagerank_step",
    "score_nodes",
    "shannon_entropy",
]
