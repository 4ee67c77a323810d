"""Rich-powered console reports for compiled context packages."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from abyss.context.models import ContextPackage, PackageEntry


class Console:
    """Terminal reporting for Abyss using Rich."""

    def __init__(self, console: RichConsole | None = None) -> None:
        self.console = console or RichConsole()

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def show_package(self, package: ContextPackage) -> None:
        """Overview panel plus one table row per file in output order."""
        budget = f"{package.token_budget:,}" if package.token_budget is not None else "unlimited"
        self.console.print(
            Panel(
                f"[bold]Tokens:[/bold] {package.total_tokens:,} / {budget} "
                f"({package.budget_used_pct:.0f}%)\n"
                f"[bold]Files:[/bold] {package.files_included} included, "
                f"{package.files_available} available\n"
                f"[bold]Assembly time:[/bold] {package.assembly_time_ms:.1f}ms",
                title="[bold]Context Package[/bold]",
                border_style="cyan",
            )
        )

        table = Table(border_style="cyan")
        table.add_column("#", justify="right", style="dim")
        table.add_column("File", style="bold")
        table.add_column("Score", justify="right", style="cyan")
        table.add_column("Tokens", justify="right")
        table.add_column("Status")

        for i, entry in enumerate(package.entries, 1):
            table.add_row(
                str(i),
                entry.path,
                f"{entry.score:.1f}",
                f"{entry.tokens:,}",
                _status(entry),
            )
        self.console.print(table)

        self.show_notes(package)

    def show_notes(self, package: ContextPackage) -> None:
        for note in package.notes:
            self.info(note)
        for warning in package.warnings:
            self.warning(warning)

    def show_scores(self, package: ContextPackage, limit: int = 20) -> None:
        """Breakdown of score components for the top-ranked files."""
        table = Table(title="Relevance Scores", border_style="cyan")
        table.add_column("File", style="bold")
        for name in ("Heuristic", "Churn", "Centrality", "Entropy", "Combined"):
            table.add_column(name, justify="right")

        ranked = sorted(package.entries, key=lambda e: (-e.score, e.path))[:limit]
        for entry in ranked:
            c = entry.components
            if c is None:
                continue
            table.add_row(
                entry.path,
                f"{c.heuristic:.0f}",
                f"{c.churn:.0f}",
                f"{c.centrality:.4f}",
                f"{c.entropy:.3f}",
                f"[cyan]{c.combined:.1f}[/cyan]",
            )
        self.console.print(table)

    def show_stats(self, stats: dict) -> None:
        """Display dependency graph statistics."""
        table = Table(title="Dependency Graph Statistics", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right", style="cyan")

        table.add_row("Files", str(stats.get("files", 0)))
        table.add_row("Edges", str(stats.get("edges", 0)))
        table.add_row("Isolated Files", str(stats.get("isolated", 0)))
        table.add_row("Cycles", str(stats.get("cycles", 0)))
        table.add_row("Unresolved Refs", str(stats.get("unresolved_refs", 0)))

        languages = stats.get("languages", {})
        if languages:
            table.add_section()
            for lang, count in sorted(languages.items(), key=lambda x: (-x[1], x[0])):
                table.add_row(f"  {lang}", str(count))

        self.console.print(table)

    def show_entry(self, entry: PackageEntry) -> None:
        """Render one file's emitted content."""
        self.console.print(
            Syntax(entry.content, entry.language or "text", theme="monokai", line_numbers=True)
        )


def _status(entry: PackageEntry) -> str:
    if not entry.included:
        return f"[red]excluded[/red] [dim]({entry.reason})[/dim]"
    if entry.compressed:
        return "[yellow]compressed[/yellow]"
    return "[green]included[/green]"
