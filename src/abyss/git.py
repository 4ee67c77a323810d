"""Collect per-file change history from git.

Counts commits touching each file inside a lookback window, the time of the
most recent change, and added/deleted line totals. Anything that goes wrong
(no git binary, not a repository, timeout) yields an empty mapping: files
without history simply get the neutral churn score.
"""

from __future__ import annotations

import logging
import re
import subprocess
import time
from enum import Enum
from pathlib import Path

from pydantic import BaseModel

from abyss.config import GitConfig

logger = logging.getLogger("abyss.git")

_DAY = 86400
_COMMIT_HEADER = re.compile(r"^commit ([0-9a-f]{40,64}) (\d+)$")
_NUMSTAT = re.compile(r"^(\d+|-)\t(\d+|-)\t(.+)$")


class Recency(str, Enum):
    """How recently a file last changed."""

    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    OLDER = "older"

    @classmethod
    def from_age(cls, age_seconds: float) -> Recency:
        days = age_seconds / _DAY
        if days <= 7:
            return cls.WEEK
        if days <= 30:
            return cls.MONTH
        if days <= 90:
            return cls.QUARTER
        return cls.OLDER


class GitStats(BaseModel):
    """Change history of a single file."""

    commit_count: int = 0
    last_modified: int = 0  # unix timestamp of the latest commit
    recency: Recency = Recency.OLDER
    added: int = 0
    deleted: int = 0


class GitHistory:
    """Git metadata provider for a repository root."""

    def __init__(self, root: str | Path, config: GitConfig | None = None) -> None:
        self.root = Path(root)
        self.config = config or GitConfig()

    def collect(self, now: float | None = None) -> dict[str, GitStats]:
        """Return stats keyed by path relative to the root (POSIX separators)."""
        if not self.config.enabled:
            return {}
        try:
            output = self._git_log()
        except (subprocess.SubprocessError, FileNotFoundError, OSError) as e:
            logger.info("Git history unavailable for %s: %s", self.root, e)
            return {}
        if output is None:
            return {}
        return parse_numstat_log(output, now if now is not None else time.time())

    def _git_log(self) -> str | None:
        if not self._is_repository():
            return None
        result = subprocess.run(
            [
                "git",
                # Print non-ASCII paths verbatim instead of as quoted octal escapes
                "-c",
                "core.quotePath=false",
                "log",
                f"--max-count={self.config.max_commits}",
                f"--since={self.config.lookback_days}.days",
                "--numstat",
                "--no-renames",
                "--format=commit %H %ct",
                "--relative",
                "--",
                ".",
            ],
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            cwd=self.root,
            timeout=self.config.timeout,
        )
        if result.returncode != 0:
            logger.info("git log failed in %s: %s", self.root, result.stderr.strip())
            return None
        return result.stdout

    def _is_repository(self) -> bool:
        result = subprocess.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            capture_output=True,
            text=True,
            cwd=self.root,
            timeout=self.config.timeout,
        )
        return result.returncode == 0 and result.stdout.strip() == "true"


def parse_numstat_log(output: str, now: float) -> dict[str, GitStats]:
    """Parse `git log --numstat --format='commit %H %ct'` output.

    Commits are listed newest first, so the first time a path appears is its
    latest change.
    """
    stats: dict[str, GitStats] = {}
    commit_time = 0

    for line in output.splitlines():
        line = line.rstrip()
        if not line:
            continue
        header = _COMMIT_HEADER.match(line)
        if header:
            commit_time = int(header.group(2))
            continue
        m = _NUMSTAT.match(line)
        if not m:
            continue

        added, deleted, path = m.groups()
        entry = stats.get(path)
        if entry is None:
            entry = GitStats(
                last_modified=commit_time,
                recency=Recency.from_age(max(0.0, now - commit_time)),
            )
            stats[path] = entry
        entry.commit_count += 1
        # Binary files report "-"
        if added != "-":
            entry.added += int(added)
        if deleted != "-":
            entry.deleted += int(deleted)

    return stats
