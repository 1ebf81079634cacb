"""Shared utility functions for Hermes.

Provides JSON I/O, name helpers, and the Rich-based console output used by
every stage: stage headers, coloured status lines, summary tables, spinners
and the generated-file tree.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.rule import Rule
from rich.table import Table
from rich.tree import Tree

console = Console()

# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary project name to a safe directory name.

    * Lowercases the input.
    * Replaces spaces and non-alphanumeric characters (except hyphens and
      underscores) with hyphens.
    * Collapses consecutive hyphens and strips leading/trailing hyphens.

    Examples::

        sanitize_name("Single Page Application (SPA)") -> "single-page-application-spa"
        sanitize_name("  Chat API  ") -> "chat-api"
    """
    result = re.sub(r"[^a-zA-Z0-9_-]", "-", name.strip().lower())
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


def count_lines(contents: Iterable[str]) -> int:
    """Total number of lines across *contents*; empty strings count as zero."""
    return sum(len(text.split("\n")) for text in contents if text)


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json_list(path: str | Path) -> list[Any]:
    """Load a JSON file that contains a top-level array.

    Returns an empty list if the file does not exist.
    """
    file_path = Path(path)
    if not file_path.exists():
        return []
    data = json.loads(file_path.read_text(encoding="utf-8"))
    if isinstance(data, list):
        return data
    return [data]


async def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> None:
    """Save data as pretty-printed JSON.

    Parent directories are created automatically and the write runs in a
    thread-pool executor so it does not block the event loop.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False, default=str)

    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, file_path.write_text, content, "utf-8")


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


STAGE_COLORS: dict[str, str] = {
    "IDEA": "bright_cyan",
    "REFINE": "bright_green",
    "ARCHITECT": "bright_yellow",
    "CODEGEN": "bright_magenta",
    "ASSEMBLE": "bright_blue",
    "DONE": "green",
}


def print_stage_header(stage: str) -> None:
    """Print a full-width rule announcing a pipeline stage."""
    color = STAGE_COLORS.get(stage.upper(), "white")
    console.print()
    console.print(Rule(f"[bold {color}] {stage.upper()} [/bold {color}]", style=color))
    console.print()


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


def create_progress() -> Progress:
    """Create a Rich spinner for a single in-flight model request.

    Returns:
        A ``Progress`` instance suitable for use as a context manager.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def build_file_tree(paths: Iterable[str], root_label: str = "project") -> Tree:
    """Arrange relative ``/``-separated paths into a Rich ``Tree``.

    Directories are created on first sight and reused, so the tree keeps the
    order in which paths were produced.
    """
    root = Tree(f"[bold blue]{root_label}/[/bold blue]")
    branches: dict[tuple[str, ...], Tree] = {(): root}

    for path in paths:
        parts = [p for p in path.strip("/").split("/") if p]
        if not parts:
            continue
        for depth in range(1, len(parts)):
            key = tuple(parts[:depth])
            if key not in branches:
                branches[key] = branches[key[:-1]].add(f"[blue]{parts[depth - 1]}/[/blue]")
        branches[tuple(parts[:-1])].add(parts[-1])

    return root
