"""Path and filename based prior for relevance.

Documentation and manifests rank highest, then entry points, core code,
utilities, and tests last. Deeper files lose a little per path component.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from abyss.config import ScoringConfig


def heuristic_score(path: str, config: ScoringConfig | None = None) -> int:
    """Base score of a path from the configured rule table."""
    config = config or ScoringConfig()
    p = PurePosixPath(path)
    filename = p.name.lower()
    path_str = path.lower()

    score = config.default_heuristic
    for rule in config.rules:
        if rule.matches(filename, path_str):
            score = rule.score
            break

    return score - len(p.parts) * config.depth_penalty
