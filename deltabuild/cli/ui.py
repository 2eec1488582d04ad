# deltabuild/cli/ui.py
"""
Shared UI helpers for CLI commands.

Usage:
    from deltabuild.cli.ui import ui, console

    ui.header("Build state")
    ui.success("Done!")
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


class UI:
    """Consistent styling for command output."""

    def header(self, title: str, subtitle: str = "") -> None:
        """Print a command header."""
        body = f"[bold]{title}[/bold]"
        if subtitle:
            body += f"\n[dim]{subtitle}[/dim]"
        console.print(Panel.fit(body, border_style="blue"))

    def success(self, msg: str) -> None:
        console.print(f"[green]✓[/green] {msg}")

    def error(self, msg: str) -> None:
        console.print(f"[red]✗[/red] {msg}")

    def warning(self, msg: str, detail: str = "") -> None:
        detail_str = f" [dim]({detail})[/dim]" if detail else ""
        console.print(f"[yellow]⚠[/yellow] {msg}{detail_str}")

    def info(self, msg: str) -> None:
        console.print(f"[dim]{msg}[/dim]")

    def table(self, title: str, columns: list[str]) -> Table:
        """Create a table with the given columns; print it with ui.print()."""
        table = Table(title=title)
        for column in columns:
            table.add_column(column)
        return table

    def print(self, renderable, markup: bool = True) -> None:
        console.print(renderable, markup=markup, highlight=False)


ui = UI()

__all__ = ["UI", "ui", "console"]
