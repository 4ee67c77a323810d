"""Data models for context compilation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

EXCEEDED_BUDGET = "exceeded budget"


class SourceFile(BaseModel):
    """A candidate file as supplied by the source catalog."""

    path: str  # POSIX path relative to the scanned root
    content: bytes
    size: int = 0
    modified: float = 0.0
    language: str | None = None

    def model_post_init(self, __context: object) -> None:
        if not self.size:
            self.size = len(self.content)


class ScoreComponents(BaseModel):
    """The weighted sub-scores behind a file's relevance score."""

    centrality: float = 0.0
    entropy: float = 0.0
    churn: float = 0.0
    heuristic: float = 0.0
    combined: float = 0.0


class FileNode(BaseModel):
    """A file after extraction. Scoring and compression return new copies."""

    model_config = ConfigDict(frozen=True)

    path: str
    content: bytes
    size: int
    language: str | None = None
    modified: float = 0.0
    defined: frozenset[str] = frozenset()
    referenced: frozenset[str] = frozenset()
    tokens: int = 0
    entropy: float = 0.0
    compressed: str | None = None  # derived variant; `content` stays full-fidelity
    compressed_tokens: int | None = None
    score: float = 0.0
    components: ScoreComponents | None = None
    errors: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return self.content.decode("utf-8-sig", errors="replace")


class CycleNotice(BaseModel):
    """A dependency cycle the orderer had to break heuristically."""

    members: list[str]
    broken_at: str  # the member emitted first

    @property
    def message(self) -> str:
        return (
            f"dependency cycle among {', '.join(self.members)}; "
            f"emitted {self.broken_at} first"
        )


class OrderedSequence(BaseModel):
    """The final linear arrangement of files."""

    paths: list[str] = Field(default_factory=list)
    cycles: list[CycleNotice] = Field(default_factory=list)


class BudgetItem(BaseModel):
    """A knapsack candidate: value is the score, weight the token cost."""

    path: str
    score: float
    tokens: int
    compressed_tokens: int | None = None  # cost of the compressed variant, if any


class BudgetDecision(BaseModel):
    """Whether a file made it into the budget, and at what cost."""

    path: str
    score: float
    tokens: int
    included: bool
    compressed: bool = False
    reason: str = ""


class BudgetPlan(BaseModel):
    """Accepted files in output order plus the rejected ones."""

    accepted: list[BudgetDecision] = Field(default_factory=list)
    rejected: list[BudgetDecision] = Field(default_factory=list)
    token_budget: int | None = None
    used_tokens: int = 0
    warnings: list[str] = Field(default_factory=list)

    @property
    def total_score(self) -> float:
        return sum(d.score for d in self.accepted)

    @property
    def accepted_paths(self) -> list[str]:
        return [d.path for d in self.accepted]

    @property
    def rejected_paths(self) -> list[str]:
        return [d.path for d in self.rejected]


class PackageEntry(BaseModel):
    """One file as handed to a renderer."""

    path: str
    language: str | None = None
    content: str = ""  # compressed variant when `compressed` is set
    score: float = 0.0
    components: ScoreComponents | None = None
    tokens: int = 0
    included: bool = True
    compressed: bool = False
    reason: str = ""


class ContextPackage(BaseModel):
    """The complete compiled context, ready for a renderer."""

    entries: list[PackageEntry] = Field(default_factory=list)
    token_budget: int | None = None
    total_tokens: int = 0
    files_included: int = 0
    files_available: int = 0
    budget_used_pct: float = 0.0
    notes: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    assembly_time_ms: float = 0.0

    @property
    def included(self) -> list[PackageEntry]:
        return [e for e in self.entries if e.included]

    @property
    def excluded(self) -> list[PackageEntry]:
        return [e for e in self.entries if not e.included]

    @property
    def order(self) -> list[str]:
        return [e.path for e in self.entries]

    def summary(self) -> str:
        """Human-readable summary of what's in the context."""
        budget = f"{self.token_budget:,}" if self.token_budget is not None else "unlimited"
        lines = [
            f"Tokens: {self.total_tokens:,} / {budget} ({self.budget_used_pct:.0f}%)",
            f"Files: {self.files_included} included, {self.files_available} available",
            f"Assembly time: {self.assembly_time_ms:.1f}ms",
            "",
            "Files:",
        ]
        for entry in self.entries:
            marker = "+" if entry.included else "-"
            flag = " [compressed]" if entry.compressed else ""
            lines.append(
                f"  {marker} {entry.path} score={entry.score:.2f} ~{entry.tokens}tok{flag}"
            )
            if entry.reason:
                lines.append(f"    reason: {entry.reason}")

        for note in self.notes:
            lines.append(f"note: {note}")
        for warning in self.warnings:
            lines.append(f"warning: {warning}")

        return "\n".join(lines)


class TokenEstimator:
    """Estimate token counts for code."""

    # Rough heuristic: 1 token ≈ 4 characters for code
    CHARS_PER_TOKEN = 4

    @classmethod
    def estimate(cls, text: str) -> int:
        """Estimate token count for a string.

        Whitespace-delimited words act as a floor for prose-like text.
        """
        return max(1, len(text) // cls.CHARS_PER_TOKEN, len(text.split()))
