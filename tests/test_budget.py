"""Tests for token-budgeted selection."""

from __future__ import annotations

import itertools
import random

from abyss.context.budget import select
from abyss.context.models import EXCEEDED_BUDGET, BudgetItem


def _items(*specs) -> list[BudgetItem]:
    return [BudgetItem(path=p, score=s, tokens=t) for p, s, t in specs]


def _optimum(items: list[BudgetItem], budget: int) -> float:
    """Exact 0/1 knapsack by enumeration."""
    best = 0.0
    for r in range(len(items) + 1):
        for combo in itertools.combinations(items, r):
            if sum(i.tokens for i in combo) <= budget:
                best = max(best, sum(i.score for i in combo))
    return best


class TestSelect:
    def test_prefers_higher_score_at_equal_cost(self):
        items = _items(("high.py", 10.0, 1000), ("low.py", 5.0, 1000))
        plan = select(items, ["high.py", "low.py"], 1500)

        assert plan.accepted_paths == ["high.py"]
        assert plan.rejected_paths == ["low.py"]
        assert plan.rejected[0].reason == EXCEEDED_BUDGET
        assert plan.used_tokens == 1000
        assert plan.warnings == []

    def test_unlimited_budget_admits_all(self):
        items = _items(("a", 1.0, 10), ("b", 2.0, 20))
        plan = select(items, ["b", "a"], None)
        assert plan.accepted_paths == ["b", "a"]
        assert plan.rejected == []
        assert plan.used_tokens == 30

    def test_budget_covering_everything(self):
        items = _items(("a", 1.0, 10), ("b", 2.0, 20), ("c", 3.0, 30))
        plan = select(items, ["a", "b", "c"], 60)
        assert plan.accepted_paths == ["a", "b", "c"]
        assert plan.rejected == []

    def test_infeasible_budget_is_empty_not_error(self):
        items = _items(("a", 1.0, 500), ("b", 2.0, 800))
        plan = select(items, ["a", "b"], 100)

        assert plan.accepted == []
        assert plan.rejected_paths == ["a", "b"]
        assert len(plan.warnings) == 1
        assert "500" in plan.warnings[0]

    def test_empty_input(self):
        plan = select([], [], 100)
        assert plan.accepted == []
        assert plan.warnings == []

    def test_zero_cost_items_always_fit(self):
        items = _items(("empty", 0.5, 0), ("big", 9.0, 1000))
        plan = select(items, ["empty", "big"], 10)
        assert plan.accepted_paths == ["empty"]

    def test_preserves_given_order(self):
        items = _items(("z", 1.0, 10), ("m", 50.0, 10), ("a", 20.0, 10), ("q", 5.0, 10))
        order = ["q", "a", "z", "m"]
        plan = select(items, order, 30)

        assert set(plan.accepted_paths) == {"m", "a", "q"}
        assert plan.accepted_paths == ["q", "a", "m"]

    def test_best_single_item_beats_dense_small_ones(self):
        # Density favours the small file, but the big one alone is worth more
        items = _items(("small", 2.0, 1), ("big", 100.0, 100))
        plan = select(items, ["small", "big"], 100)
        assert plan.accepted_paths == ["big"]

    def test_exchange_improves_greedy(self):
        # Greedy by density takes a and b (value 13); swapping b for c fits and
        # is worth 16.
        items = _items(("a", 6.0, 2), ("b", 7.0, 5), ("c", 10.0, 8))
        plan = select(items, ["a", "b", "c"], 10)
        assert set(plan.accepted_paths) == {"a", "c"}
        assert plan.total_score == 16.0

    def test_no_exchanges_keeps_greedy(self):
        items = _items(("a", 6.0, 2), ("b", 7.0, 5), ("c", 10.0, 8))
        plan = select(items, ["a", "b", "c"], 10, max_exchanges=0)
        assert set(plan.accepted_paths) == {"a", "b"}

    def test_never_exceeds_budget(self):
        rng = random.Random(3)
        for _ in range(200):
            items = [
                BudgetItem(path=f"f{i}", score=rng.uniform(0, 100), tokens=rng.randint(0, 400))
                for i in range(rng.randint(1, 15))
            ]
            budget = rng.randint(0, 1500)
            plan = select(items, [i.path for i in items], budget)
            assert plan.used_tokens <= budget
            assert sum(d.tokens for d in plan.accepted) == plan.used_tokens
            assert len(plan.accepted) + len(plan.rejected) == len(items)

    def test_close_to_exact_solver(self):
        rng = random.Random(42)
        ratios = []
        for _ in range(150):
            items = [
                BudgetItem(path=f"f{i}", score=rng.uniform(1, 100), tokens=rng.randint(1, 300))
                for i in range(rng.randint(1, 9))
            ]
            budget = rng.randint(50, 800)
            optimum = _optimum(items, budget)
            plan = select(items, [i.path for i in items], budget)

            assert plan.total_score <= optimum + 1e-9
            if optimum:
                ratio = plan.total_score / optimum
                assert ratio >= 0.5
                ratios.append(ratio)

        assert sum(ratios) / len(ratios) > 0.9

    def test_deterministic(self):
        items = _items(("a", 5.0, 10), ("b", 5.0, 10), ("c", 5.0, 10))
        first = select(items, ["a", "b", "c"], 20)
        second = select(list(reversed(items)), ["a", "b", "c"], 20)
        assert first == second
        assert first.accepted_paths == ["a", "b"]


class TestCompressOverflow:
    def test_rejected_file_admitted_compressed(self):
        items = [
            BudgetItem(path="core.py", score=50.0, tokens=600),
            BudgetItem(path="extra.py", score=10.0, tokens=600, compressed_tokens=150),
        ]
        plan = select(items, ["core.py", "extra.py"], 800, compress_overflow=True)

        assert plan.accepted_paths == ["core.py", "extra.py"]
        extra = plan.accepted[1]
        assert extra.compressed
        assert extra.tokens == 150
        assert plan.used_tokens == 750

    def test_disabled_by_default(self):
        items = [
            BudgetItem(path="core.py", score=50.0, tokens=600),
            BudgetItem(path="extra.py", score=10.0, tokens=600, compressed_tokens=150),
        ]
        plan = select(items, ["core.py", "extra.py"], 800)
        assert plan.accepted_paths == ["core.py"]
