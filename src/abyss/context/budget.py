"""Token-budgeted file selection.

A 0/1 knapsack: each file's weight is its token cost and its value is its
relevance score. Exact dynamic programming over token ceilings in the
hundreds of thousands is too expensive, so selection is:

  1. Greedy by value density (score per token), zero-cost files first.
  2. If the single most valuable file that fits is worth more than the whole
     greedy set, start from it instead. This bounds the result at no less
     than half the optimum.
  3. A bounded exchange pass: swap an admitted file for a more valuable
     rejected one whenever the swap fits, then greedily refill the freed
     budget. Every swap strictly increases the total value.

Selection decides membership only; accepted files come back in the order the
caller supplies.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from abyss.context.models import EXCEEDED_BUDGET, BudgetDecision, BudgetItem, BudgetPlan

logger = logging.getLogger("abyss.engine")


def _density_key(item: BudgetItem) -> tuple:
    if item.tokens <= 0:
        return (0, 0.0, -item.score, item.path)
    return (1, -item.score / item.tokens, -item.score, item.path)


def _value_key(item: BudgetItem) -> tuple:
    return (item.score, -item.tokens, item.path)


class _Knapsack:
    """Mutable selection state for one `select` call."""

    def __init__(self, items: Sequence[BudgetItem], budget: int) -> None:
        self.items = sorted(items, key=_density_key)
        self.budget = budget
        self.admitted: dict[str, BudgetItem] = {}
        self.used = 0

    @property
    def value(self) -> float:
        return sum(item.score for item in self.admitted.values())

    def fits(self, item: BudgetItem) -> bool:
        return self.used + item.tokens <= self.budget

    def admit(self, item: BudgetItem) -> None:
        self.admitted[item.path] = item
        self.used += item.tokens

    def evict(self, item: BudgetItem) -> None:
        del self.admitted[item.path]
        self.used -= item.tokens

    def reset(self) -> None:
        self.admitted.clear()
        self.used = 0

    def rejected(self) -> list[BudgetItem]:
        return [item for item in self.items if item.path not in self.admitted]

    def fill(self) -> None:
        """Greedy pass by value density over everything not yet admitted."""
        for item in self.items:
            if item.path not in self.admitted and self.fits(item):
                self.admit(item)

    # -------------------------------------------------------------------
    # Improvement passes
    # -------------------------------------------------------------------

    def prefer_best_single(self) -> None:
        fitting = [item for item in self.items if item.tokens <= self.budget]
        if not fitting:
            return
        best = max(fitting, key=_value_key)
        if best.score > self.value:
            self.reset()
            self.admit(best)
            self.fill()

    def exchange(self, max_exchanges: int) -> int:
        """Apply improving swaps; returns how many were made."""
        swaps = 0
        while swaps < max_exchanges:
            swap = self._find_swap()
            if swap is None:
                break
            out, into = swap
            self.evict(out)
            self.admit(into)
            self.fill()
            swaps += 1
        return swaps

    def _find_swap(self) -> tuple[BudgetItem, BudgetItem] | None:
        candidates = sorted(self.rejected(), key=lambda i: (-i.score, i.path))
        for out in sorted(self.admitted.values(), key=_value_key):
            room = self.budget - self.used + out.tokens
            for into in candidates:
                if into.score <= out.score:
                    break
                if into.tokens <= room:
                    return out, into
        return None


def select(
    items: Iterable[BudgetItem],
    ordered_paths: Sequence[str],
    budget: int | None,
    max_exchanges: int = 32,
    compress_overflow: bool = False,
) -> BudgetPlan:
    """Choose the files that fit within `budget` tokens.

    Args:
        items: Candidates; `tokens` is the cost at which each is offered.
        ordered_paths: Output order for accepted and rejected files.
        budget: Token ceiling, or None to admit everything.
        max_exchanges: Upper bound on improving swaps.
        compress_overflow: Retry files rejected at full cost at their
            `compressed_tokens` cost.

    Returns:
        A BudgetPlan; an infeasible budget yields an empty plan plus a warning.
    """
    items = list(items)
    by_path = {item.path: item for item in items}
    position = {path: i for i, path in enumerate(ordered_paths)}

    def in_order(paths: Iterable[str]) -> list[str]:
        return sorted(paths, key=lambda p: (position.get(p, len(position)), p))

    if budget is None:
        accepted = [
            BudgetDecision(path=p, score=by_path[p].score, tokens=by_path[p].tokens, included=True)
            for p in in_order(by_path)
        ]
        return BudgetPlan(
            accepted=accepted,
            token_budget=None,
            used_tokens=sum(d.tokens for d in accepted),
        )

    knapsack = _Knapsack(items, max(budget, 0))
    knapsack.fill()
    knapsack.prefer_best_single()
    swaps = knapsack.exchange(max_exchanges)
    if swaps:
        logger.debug("Budget exchange pass made %d swap(s)", swaps)

    admitted = {path: (item.tokens, False) for path, item in knapsack.admitted.items()}
    used = knapsack.used

    if compress_overflow:
        overflow = [
            item.model_copy(update={"tokens": item.compressed_tokens})
            for item in knapsack.rejected()
            if item.compressed_tokens is not None and item.compressed_tokens < item.tokens
        ]
        for item in sorted(overflow, key=_density_key):
            if used + item.tokens <= budget:
                admitted[item.path] = (item.tokens, True)
                used += item.tokens

    plan = BudgetPlan(token_budget=budget, used_tokens=used)
    for path in in_order(by_path):
        item = by_path[path]
        if path in admitted:
            tokens, compressed = admitted[path]
            plan.accepted.append(
                BudgetDecision(
                    path=path, score=item.score, tokens=tokens, included=True, compressed=compressed
                )
            )
        else:
            plan.rejected.append(
                BudgetDecision(
                    path=path,
                    score=item.score,
                    tokens=item.tokens,
                    included=False,
                    reason=EXCEEDED_BUDGET,
                )
            )

    if items and not plan.accepted:
        smallest = min(item.tokens for item in items)
        plan.warnings.append(
            f"No file fits within the token budget of {budget:,} "
            f"(smallest needs {smallest:,} tokens)"
        )
    return plan
