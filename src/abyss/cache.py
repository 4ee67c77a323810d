"""Persistent cache of per-file token counts and compression results.

Entries are keyed by the SHA-256 of the file content together with a hash of
the settings that shaped the result, so editing a file or changing the
compression mode simply misses. The cache is a single JSON file; a missing or
corrupt file starts cold.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path

from pydantic import BaseModel, ValidationError

from abyss.config import CACHE_FILE, CompressionConfig, get_abyss_dir

logger = logging.getLogger("abyss.cache")

_CACHE_VERSION = 1


class CacheEntry(BaseModel):
    tokens: int
    compressed: str | None = None
    compressed_tokens: int | None = None


def content_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def config_hash(compression: CompressionConfig, counter_name: str = "") -> str:
    """Hash of everything besides content that affects a cache entry."""
    payload = json.dumps(
        {"compression": compression.model_dump(mode="json"), "counter": counter_name},
        sort_keys=True,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


class ContentCache:
    """(content hash, config hash) -> CacheEntry, optionally backed by a file.

    Lookups are safe from worker threads as long as no writes happen
    concurrently; the compiler only writes after all workers have finished.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._entries: dict[str, CacheEntry] = {}
        self._dirty = False
        if self.path is not None:
            self._load()

    @classmethod
    def for_project(cls, root: str | Path) -> ContentCache:
        return cls(get_abyss_dir(Path(root)) / CACHE_FILE)

    @staticmethod
    def key(content: bytes, settings_hash: str) -> str:
        return f"{content_hash(content)}:{settings_hash}"

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def put(self, key: str, entry: CacheEntry) -> None:
        if self._entries.get(key) != entry:
            self._entries[key] = entry
            self._dirty = True

    def clear(self) -> None:
        if self._entries:
            self._entries.clear()
            self._dirty = True

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if data.get("version") != _CACHE_VERSION:
                logger.info("Ignoring cache %s with unknown version", self.path)
                return
            self._entries = {
                key: CacheEntry(**value) for key, value in data.get("entries", {}).items()
            }
        except (OSError, json.JSONDecodeError, ValidationError, AttributeError, TypeError) as e:
            logger.warning("Ignoring corrupt cache %s: %s", self.path, e)
            self._entries = {}

    def save(self) -> None:
        """Write the cache file if anything changed."""
        if self.path is None or not self._dirty:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": _CACHE_VERSION,
            "entries": {k: v.model_dump() for k, v in sorted(self._entries.items())},
        }
        self.path.write_text(json.dumps(data), encoding="utf-8")
        self._dirty = False
