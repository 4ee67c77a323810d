"""Context compilation models, budget selection and the compiler.

Usage:
    from abyss.context.engine import ContextCompiler

    compiler = ContextCompiler(config)
    package = compiler.compile(sources, git_stats, token_budget=8000)
    print(package.summary())
"""

from abyss.context.models import (
    BudgetDecision,
    BudgetItem,
    BudgetPlan,
    ContextPackage,
    CycleNotice,
    FileNode,
    OrderedSequence,
    PackageEntry,
    ScoreComponents,
    SourceFile,
    TokenEstimator,
)

__all__ = [
    "BudgetDecision",
    "BudgetItem",
    "BudgetPlan",
    "ContextPackage",
    "CycleNotice",
    "FileNode",
    "OrderedSequence",
    "PackageEntry",
    "ScoreComponents",
    "SourceFile",
    "TokenEstimator",
]
