"""Configuration management for Abyss."""

from __future__ import annotations

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from abyss.exceptions import ConfigError

ABYSS_DIR = ".abyss"
CONFIG_FILE = "config.json"
CACHE_FILE = "cache.json"


class CompressionMode(str, Enum):
    """How file content is reduced before it is counted and emitted."""

    NONE = "none"
    SIMPLE = "simple"  # Comment and blank-line stripping
    SMART = "smart"  # Structural body elision


class IndexerConfig(BaseModel):
    """Source catalog configuration."""

    exclude_patterns: list[str] = Field(
        default_factory=lambda: [
            "node_modules",
            "__pycache__",
            ".git",
            ".abyss",
            "dist",
            "build",
            "target",
            ".venv",
            "venv",
            ".env",
            "*.pyc",
            "*.pyo",
            "*.so",
            "*.dylib",
            "*.dll",
            "*.exe",
            "*.min.js",
            "*.min.css",
            "*.map",
            "*.lock",
            "package-lock.json",
            "yarn.lock",
        ]
    )
    include_patterns: list[str] = Field(default_factory=list)  # empty = everything
    max_file_size_kb: int = 500
    max_depth: int | None = None
    languages: list[str] = Field(default_factory=list)  # empty = all
    respect_gitignore: bool = True


class HeuristicRule(BaseModel):
    """One row of the path heuristic table. First matching rule wins."""

    name: str
    score: int
    filenames: list[str] = Field(default_factory=list)  # exact, lowercase
    suffixes: list[str] = Field(default_factory=list)  # filename endings
    path_contains: list[str] = Field(default_factory=list)  # substrings of the path

    def matches(self, filename: str, path: str) -> bool:
        if filename in self.filenames:
            return True
        if any(filename.endswith(s) for s in self.suffixes):
            return True
        return any(fragment in path for fragment in self.path_contains)


def _default_rules() -> list[HeuristicRule]:
    return [
        HeuristicRule(name="readme", score=1000, filenames=["readme.md", "readme.txt", "readme.rst", "readme"]),
        HeuristicRule(name="docs", score=900, filenames=["architecture.md", "contributing.md"]),
        HeuristicRule(
            name="manifest",
            score=800,
            filenames=[
                "cargo.toml",
                "package.json",
                "go.mod",
                "makefile",
                "dockerfile",
                "pyproject.toml",
                "setup.py",
                "setup.cfg",
                "requirements.txt",
            ],
        ),
        HeuristicRule(
            name="entry_point",
            score=700,
            filenames=[
                "main.rs",
                "lib.rs",
                "index.js",
                "index.ts",
                "main.go",
                "main.py",
                "__main__.py",
            ],
        ),
        HeuristicRule(name="core", score=600, path_contains=["core", "app", "model", "schema"]),
        HeuristicRule(name="utility", score=400, path_contains=["util", "common", "helper"]),
        HeuristicRule(
            name="test",
            score=100,
            suffixes=["_test.go", ".test.ts", ".test.js", ".spec.ts", ".spec.js"],
            path_contains=["test", "spec", "bench"],
        ),
    ]


class ScoreWeights(BaseModel):
    """Weights of the combined relevance score."""

    heuristic: float = 1.0
    churn: float = 1.0
    centrality: float = 1000.0  # 0.01 PageRank -> 10 points
    entropy: float = 80.0  # normalized entropy is in [0, 1]


class ScoringConfig(BaseModel):
    """Relevance scoring constants. Passed explicitly into every scoring call."""

    weights: ScoreWeights = Field(default_factory=ScoreWeights)
    damping: float = 0.85
    max_iterations: int = 100
    tolerance: float = 1e-6
    default_heuristic: int = 500
    depth_penalty: int = 10
    churn_default: float = 0.0
    churn_cap: float = 200.0
    rules: list[HeuristicRule] = Field(default_factory=_default_rules)


class CompressionConfig(BaseModel):
    """Compression configuration."""

    mode: CompressionMode = CompressionMode.NONE
    compress_overflow: bool = False  # retry rejected files compressed


class EngineConfig(BaseModel):
    """Pipeline execution configuration."""

    token_budget: int | None = None  # None = unlimited
    workers: int = Field(default_factory=lambda: min(8, os.cpu_count() or 1))
    max_exchanges: int = 32
    use_cache: bool = True


class GitConfig(BaseModel):
    """Git history collection configuration."""

    enabled: bool = True
    lookback_days: int = 90
    max_commits: int = 1000
    timeout: int = 30


class ProjectConfig(BaseModel):
    """Full project configuration."""

    name: str = ""
    root_path: str = "."
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    compression: CompressionConfig = Field(default_factory=CompressionConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    git: GitConfig = Field(default_factory=GitConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .abyss directory."""
    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        if (current / ABYSS_DIR).is_dir():
            return current
        current = current.parent
    if (current / ABYSS_DIR).is_dir():
        return current
    return None


def get_abyss_dir(root: Path) -> Path:
    """Get the .abyss directory for a project root."""
    return root / ABYSS_DIR


def load_config(root: Path) -> ProjectConfig:
    """Load configuration from .abyss/config.json."""
    config_path = get_abyss_dir(root) / CONFIG_FILE
    if not config_path.exists():
        return ProjectConfig(name=root.name, root_path=str(root))
    try:
        data = json.loads(config_path.read_text())
        return ProjectConfig(**data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e


def save_config(root: Path, config: ProjectConfig) -> None:
    """Save configuration to .abyss/config.json."""
    abyss_dir = get_abyss_dir(root)
    abyss_dir.mkdir(parents=True, exist_ok=True)
    config_path = abyss_dir / CONFIG_FILE
    config_path.write_text(json.dumps(config.model_dump(mode="json"), indent=2))


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Set a nested config value using dot notation (e.g., 'engine.token_budget')."""
    parts = key.split(".")
    data = config.model_dump(mode="json")
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise ConfigError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise ConfigError(f"Invalid config key: {key}")
    target[parts[-1]] = value
    try:
        return ProjectConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {e}") from e
