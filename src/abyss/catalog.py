"""Source catalog: walk a directory and collect candidate files."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path, PurePosixPath

from abyss.config import IndexerConfig
from abyss.context.models import SourceFile
from abyss.exceptions import ConfigError
from abyss.parser.models import detect_language

logger = logging.getLogger("abyss.catalog")

# Null bytes in the leading chunk mark a file as binary
_BINARY_SNIFF_BYTES = 8192

IGNORE_FILE = ".abyssignore"


def is_binary(content: bytes) -> bool:
    return b"\x00" in content[:_BINARY_SNIFF_BYTES]


def collect_sources(root: str | Path, config: IndexerConfig | None = None) -> list[SourceFile]:
    """Collect every readable text file under `root`, sorted by path.

    Raises:
        ConfigError: if `root` is not a directory.
    """
    root = Path(root).resolve()
    if not root.is_dir():
        raise ConfigError(f"Source root is not a directory: {root}")
    if config is None:
        config = IndexerConfig()

    sources = []
    for rel_path in _collect_files(root, config):
        full_path = root / rel_path
        try:
            content = full_path.read_bytes()
            modified = full_path.stat().st_mtime
        except OSError as e:
            logger.warning("Skipping unreadable file %s: %s", rel_path, e)
            continue
        if is_binary(content):
            logger.debug("Skipping binary file %s", rel_path)
            continue
        sources.append(
            SourceFile(
                path=rel_path,
                content=content,
                size=len(content),
                modified=modified,
                language=detect_language(rel_path),
            )
        )
    return sources


def _collect_files(root: Path, config: IndexerConfig) -> list[str]:
    """Relative POSIX paths of files passing the configured filters."""
    files = []
    max_size = config.max_file_size_kb * 1024

    # Project ignore file applies regardless of respect_gitignore
    exclude = list(config.exclude_patterns) + _read_ignore_file(root / IGNORE_FILE)
    if config.respect_gitignore:
        exclude += _read_ignore_file(root / ".gitignore")

    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        depth = 0 if rel_dir == "." else len(PurePosixPath(rel_dir).parts)

        if config.max_depth is not None and depth >= config.max_depth:
            dirnames[:] = []
        else:
            dirnames[:] = sorted(
                d
                for d in dirnames
                if not _should_exclude(d if rel_dir == "." else f"{rel_dir}/{d}", exclude)
            )

        for filename in filenames:
            rel_path = filename if rel_dir == "." else f"{rel_dir}/{filename}"

            if _should_exclude(rel_path, exclude):
                continue
            if config.include_patterns and not _matches_any(rel_path, config.include_patterns):
                continue
            if config.languages and detect_language(rel_path) not in config.languages:
                continue

            try:
                if (Path(dirpath) / filename).stat().st_size > max_size:
                    continue
            except OSError:
                continue

            files.append(rel_path)

    return sorted(files)


def _matches_any(path: str, patterns: list[str]) -> bool:
    name = PurePosixPath(path).name
    return any(fnmatch.fnmatch(path, p) or fnmatch.fnmatch(name, p) for p in patterns)


def _should_exclude(path: str, patterns: list[str]) -> bool:
    """Check if a path matches any exclusion pattern."""
    path_parts = PurePosixPath(path).parts
    for pattern in patterns:
        # Check against full path
        if fnmatch.fnmatch(path, pattern):
            return True
        # Check against any path component
        for part in path_parts:
            if fnmatch.fnmatch(part, pattern):
                return True
    return False


def _read_ignore_file(path: Path) -> list[str]:
    """Read glob patterns from a gitignore-style file, one per line."""
    if not path.exists():
        return []

    patterns = []
    try:
        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith(("#", "!")):
                continue
            patterns.append(line.strip("/"))
    except OSError as e:
        logger.debug("Could not read %s: %s", path, e)
    return patterns
