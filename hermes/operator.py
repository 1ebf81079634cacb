"""Human-interaction collaborator.

The pipeline and the project saver never touch the terminal directly; they
ask an :class:`Operator` for replies and decisions. :class:`ConsoleOperator`
implements it with ``rich.prompt``; tests substitute a scripted operator.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from hermes.utils import console


@runtime_checkable
class Operator(Protocol):
    """Source of free-text replies and yes/no decisions."""

    def ask(self, message: str, default: str | None = None) -> str:
        """Return a free-text reply."""
        ...

    def confirm(self, message: str, default: bool = True) -> bool:
        """Return a yes/no decision."""
        ...

    def choose(self, message: str, choices: Sequence[str], default: str | None = None) -> str:
        """Return one of *choices*."""
        ...

    def show(self, message: str, title: str | None = None) -> None:
        """Display a block of text."""
        ...


class ConsoleOperator:
    """Interactive operator backed by ``rich.prompt``."""

    def ask(self, message: str, default: str | None = None) -> str:
        if default is None:
            return Prompt.ask(f"[bold green]{message}[/bold green]", console=console).strip()
        return Prompt.ask(
            f"[bold green]{message}[/bold green]", default=default, console=console
        ).strip()

    def confirm(self, message: str, default: bool = True) -> bool:
        return Confirm.ask(message, default=default, console=console)

    def choose(self, message: str, choices: Sequence[str], default: str | None = None) -> str:
        return Prompt.ask(
            f"[bold]{message}[/bold]", choices=list(choices), default=default, console=console
        )

    def show(self, message: str, title: str | None = None) -> None:
        if title is None:
            console.print(message)
            return
        console.print(Panel(escape(message), title=title, border_style="cyan"))
