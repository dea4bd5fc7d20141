"""In-app toast surface."""

from typing import Protocol

from rich.console import Console
from rich.panel import Panel


class Toaster(Protocol):
    """Shows a short, transient message to the user."""

    def show(self, title: str, description: str) -> None: ...


class ConsoleToaster:
    """Renders toasts as rich panels on the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)

    def show(self, title: str, description: str) -> None:
        self._console.print(
            Panel(description, title=f"[bold]{title}[/bold]", border_style="cyan", expand=False)
        )
