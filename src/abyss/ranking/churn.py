"""Change-frequency and recency signal from git history."""

from __future__ import annotations

from abyss.config import ScoringConfig
from abyss.git import GitStats, Recency

_RECENCY_BONUS: dict[Recency, float] = {
    Recency.WEEK: 50.0,
    Recency.MONTH: 30.0,
    Recency.QUARTER: 15.0,
    Recency.OLDER: 0.0,
}


def churn_score(stats: GitStats | None, config: ScoringConfig | None = None) -> float:
    """Score a file's history; files without history get the neutral default."""
    config = config or ScoringConfig()
    if stats is None or stats.commit_count == 0:
        return config.churn_default

    frequency = min(stats.commit_count * 5, 150)
    lines = min((stats.added + stats.deleted) / 100, 20.0)
    return min(frequency + _RECENCY_BONUS[stats.recency] + lines, config.churn_cap)
