"""
Human-readable progress output.

Colors follow the usual convention: blue step headers, green success,
yellow skipped/already-done, red fatal errors.
"""
from typing import Optional

from rich.console import Console
from rich.markup import escape


class Reporter:
    """Prints provisioning progress to the terminal."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def banner(self, title: str) -> None:
        rule = "=" * 41
        self.console.print(rule)
        self.console.print(escape(title))
        self.console.print(rule)
        self.console.print()

    def step(self, number: int, title: str) -> None:
        self.console.print()
        self.console.print(f"[blue]Step {number}: {escape(title)}...[/blue]")

    def heading(self, title: str) -> None:
        self.console.print(f"[blue]{escape(title)}[/blue]")

    def info(self, message: str) -> None:
        self.console.print(f"  - {escape(message)}")

    def success(self, message: str) -> None:
        self.console.print(f"[green]  ✓ {escape(message)}[/green]")

    def skipped(self, message: str) -> None:
        self.console.print(f"[yellow]  ! {escape(message)}[/yellow]")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]{escape(message)}[/yellow]")

    def error(self, message: str) -> None:
        self.console.print(f"[red]Error: {escape(message)}[/red]")

    def line(self, message: str = "") -> None:
        self.console.print(escape(message))
