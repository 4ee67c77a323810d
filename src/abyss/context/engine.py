"""Context compilation: source files in, ranked and budgeted package out.

Pipeline:
  1. Per file, on a thread pool: extract definitions and references, measure
     entropy, count tokens, build the compressed variant. Results are
     memoized in the content cache.
  2. Barrier: every per-file task has finished.
  3. Build the dependency graph, compute centrality and combined scores.
  4. Order files topologically with score as priority.
  5. Select the highest-value subset under the token budget.

Steps 3-5 run single-threaded over immutable inputs, so the output is a pure
function of the files, git stats and configuration.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Mapping

from abyss.cache import CacheEntry, ContentCache, config_hash
from abyss.catalog import collect_sources
from abyss.compress import compress
from abyss.config import CompressionMode, ProjectConfig, load_config
from abyss.context.budget import select
from abyss.context.models import (
    BudgetItem,
    BudgetPlan,
    ContextPackage,
    FileNode,
    PackageEntry,
    SourceFile,
    TokenEstimator,
)
from abyss.exceptions import AbyssError, ScanCancelled
from abyss.git import GitHistory, GitStats
from abyss.graph.builder import GraphBuilder
from abyss.graph.order import topological_order
from abyss.parser import detect_language, extract
from abyss.ranking import normalized_entropy, score_nodes

logger = logging.getLogger("abyss.engine")

TokenCounter = Callable[[str], int]


class CancellationToken:
    """Cooperative cancellation flag shared with a running compile."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class _FileResult:
    node: FileNode
    cache_key: str
    entry: CacheEntry
    cache_hit: bool


class ContextCompiler:
    """Compiles a set of source files into a ContextPackage.

    Usage:
        compiler = ContextCompiler(config)
        package = compiler.compile(sources, git_stats, token_budget=8000)
        print(package.summary())
    """

    def __init__(
        self,
        config: ProjectConfig | None = None,
        token_counter: TokenCounter | None = None,
        cache: ContentCache | None = None,
    ) -> None:
        self.config = config or ProjectConfig()
        self.token_counter = token_counter or TokenEstimator.estimate
        self.cache = cache
        counter_name = getattr(self.token_counter, "__qualname__", type(self.token_counter).__name__)
        self._settings_hash = config_hash(self.config.compression, counter_name)

    def compile(
        self,
        files: Iterable[SourceFile],
        git_stats: Mapping[str, GitStats] | None = None,
        token_budget: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> ContextPackage:
        """Run the full pipeline.

        Args:
            files: Candidate files. Paths must be unique.
            git_stats: Change history keyed by path; missing files get the
                neutral churn score.
            token_budget: Overrides `engine.token_budget` when given.
            cancel: Checked before each file and at the barrier.

        Raises:
            AbyssError: if two files share a path.
            ScanCancelled: if `cancel` was set; no partial result escapes.
        """
        start = time.time()
        budget = token_budget if token_budget is not None else self.config.engine.token_budget
        sources = sorted(files, key=lambda f: f.path)
        for previous, current in zip(sources, sources[1:]):
            if previous.path == current.path:
                raise AbyssError(f"Duplicate source path: {current.path}")

        if not sources:
            return ContextPackage(token_budget=budget)

        results = self._process(sources, cancel)
        self._store_cache(results)
        nodes = [r.node for r in results]

        builder = GraphBuilder()
        graph = builder.build(nodes)
        scored = score_nodes(nodes, graph, git_stats, self.config.scoring)
        by_path = {n.path: n for n in scored}

        order = topological_order(graph, {n.path: n.score for n in scored})

        mode = self.config.compression.mode
        items = [
            BudgetItem(
                path=n.path,
                score=n.score,
                tokens=self._cost(n),
                compressed_tokens=n.compressed_tokens,
            )
            for n in scored
        ]
        plan = select(
            items,
            order.paths,
            budget,
            max_exchanges=self.config.engine.max_exchanges,
            compress_overflow=(
                mode == CompressionMode.NONE and self.config.compression.compress_overflow
            ),
        )

        entries = self._entries(by_path, order.paths, plan)
        package = ContextPackage(
            entries=entries,
            token_budget=budget,
            total_tokens=plan.used_tokens,
            files_included=len(plan.accepted),
            files_available=len(scored),
            budget_used_pct=(plan.used_tokens / budget * 100) if budget else 0.0,
            notes=[c.message for c in order.cycles],
            warnings=[f"{n.path}: {err}" for n in scored for err in n.errors] + plan.warnings,
        )
        package.assembly_time_ms = round((time.time() - start) * 1000, 1)

        stats = builder.get_stats()
        logger.info(
            "Compiled %d/%d files (%d edges, %d cycles) into %d tokens in %.1fms",
            package.files_included,
            package.files_available,
            stats["edges"],
            stats["cycles"],
            package.total_tokens,
            package.assembly_time_ms,
        )
        return package

    # -------------------------------------------------------------------
    # Per-file work
    # -------------------------------------------------------------------

    def _process(
        self, sources: list[SourceFile], cancel: CancellationToken | None
    ) -> list[_FileResult]:
        total = len(sources)
        workers = max(1, self.config.engine.workers)
        results: list[_FileResult] = []

        if workers == 1 or total == 1:
            for source in sources:
                if cancel is not None and cancel.cancelled:
                    raise ScanCancelled(completed=len(results), total=total)
                results.append(self._process_file(source))
        else:
            with ThreadPoolExecutor(max_workers=min(workers, total)) as executor:
                futures: list[Future] = [
                    executor.submit(self._process_file, source, cancel) for source in sources
                ]
                for future in as_completed(futures):
                    if cancel is not None and cancel.cancelled:
                        for pending in futures:
                            pending.cancel()
                        raise ScanCancelled(completed=len(results), total=total)
                    result = future.result()
                    if result is not None:
                        results.append(result)

        # Barrier: every task has finished
        if cancel is not None and cancel.cancelled:
            raise ScanCancelled(completed=len(results), total=total)
        return sorted(results, key=lambda r: r.node.path)

    def _process_file(
        self, source: SourceFile, cancel: CancellationToken | None = None
    ) -> _FileResult | None:
        if cancel is not None and cancel.cancelled:
            return None

        # A leading byte order mark would make the file unparseable
        text = source.content.decode("utf-8-sig", errors="replace")
        language = source.language or detect_language(source.path)
        extraction = extract(text, language, source.path)

        key = ContentCache.key(source.content, self._settings_hash)
        entry = self.cache.get(key) if self.cache is not None else None
        cache_hit = entry is not None
        if entry is None:
            entry = self._measure(text, language)

        node = FileNode(
            path=source.path,
            content=source.content,
            size=source.size,
            language=language,
            modified=source.modified,
            defined=frozenset(extraction.defined),
            referenced=frozenset(extraction.referenced),
            tokens=entry.tokens,
            entropy=normalized_entropy(source.content),
            compressed=entry.compressed,
            compressed_tokens=entry.compressed_tokens,
            errors=tuple(extraction.errors),
        )
        return _FileResult(node=node, cache_key=key, entry=entry, cache_hit=cache_hit)

    def _measure(self, text: str, language: str | None) -> CacheEntry:
        tokens = self.token_counter(text)
        compression = self.config.compression
        if compression.mode != CompressionMode.NONE:
            mode = compression.mode
        elif compression.compress_overflow:
            mode = CompressionMode.SMART
        else:
            return CacheEntry(tokens=tokens)

        compressed = compress(text, language, mode)
        if compressed == text:
            return CacheEntry(tokens=tokens)
        return CacheEntry(
            tokens=tokens,
            compressed=compressed,
            compressed_tokens=self.token_counter(compressed),
        )

    def _store_cache(self, results: list[_FileResult]) -> None:
        if self.cache is None:
            return
        misses = [r for r in results if not r.cache_hit]
        for r in misses:
            self.cache.put(r.cache_key, r.entry)
        logger.debug("Cache: %d hits, %d misses", len(results) - len(misses), len(misses))
        self.cache.save()

    # -------------------------------------------------------------------
    # Assembly
    # -------------------------------------------------------------------

    def _cost(self, node: FileNode) -> int:
        """Token cost at which a file is offered to the selector."""
        if self.config.compression.mode != CompressionMode.NONE and node.compressed is not None:
            return node.compressed_tokens
        return node.tokens

    def _entries(
        self, by_path: dict[str, FileNode], order: list[str], plan: BudgetPlan
    ) -> list[PackageEntry]:
        decisions = {d.path: d for d in plan.accepted + plan.rejected}
        compress_all = self.config.compression.mode != CompressionMode.NONE

        entries = []
        for path in order:
            node = by_path[path]
            decision = decisions[path]
            compressed = node.compressed is not None and (compress_all or decision.compressed)
            entries.append(
                PackageEntry(
                    path=path,
                    language=node.language,
                    content=node.compressed if compressed else node.text,
                    score=node.score,
                    components=node.components,
                    tokens=decision.tokens,
                    included=decision.included,
                    compressed=compressed,
                    reason=decision.reason,
                )
            )
        return entries


def compile_directory(
    root: str | Path,
    config: ProjectConfig | None = None,
    token_budget: int | None = None,
    cancel: CancellationToken | None = None,
) -> ContextPackage:
    """Collect, analyze and compile a directory with the default collaborators."""
    root = Path(root).resolve()
    if config is None:
        config = load_config(root)

    sources = collect_sources(root, config.indexer)
    git_stats = GitHistory(root, config.git).collect()
    cache = ContentCache.for_project(root) if config.engine.use_cache else None

    compiler = ContextCompiler(config, cache=cache)
    return compiler.compile(sources, git_stats, token_budget=token_budget, cancel=cancel)
