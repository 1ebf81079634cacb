"""Hermes command-line interface.

Usage::

    hermes                       # interactive menu
    hermes new "A todo app with reminders"
    hermes config --token sk-... --model coder --projects-path ./projects
    hermes recent
    hermes test-api
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from rich.panel import Panel
from rich.table import Table

from hermes import __version__
from hermes.config import DEFAULT_CONFIG_PATH, Config
from hermes.llm_client import CompletionClient
from hermes.operator import ConsoleOperator, Operator
from hermes.pipeline import Pipeline, RunStatus
from hermes.saver import ProjectSaver, load_recent_projects
from hermes.utils import console, create_progress, print_error, print_success, print_warning

# statuses that still count as a successful invocation
_OK_STATUSES = frozenset({RunStatus.COMPLETED, RunStatus.DECLINED, RunStatus.EXITED})

MENU_OPTIONS: tuple[tuple[str, str], ...] = (
    ("1", "Development"),
    ("2", "Recent projects"),
    ("3", "Settings"),
    ("4", "Test API connection"),
    ("5", "About"),
    ("6", "Exit"),
)


# ---------------------------------------------------------------------------
# Configuration helpers
# ---------------------------------------------------------------------------


def load_config(path: Path, apply_env: bool = True) -> Config:
    """Load *path* (defaults when absent), then apply ``HERMES_*`` overrides."""
    config = Config.load(path) if Config.exists(path) else Config()
    return Config.from_env(config) if apply_env else config


def first_run_setup(operator: Operator, path: Path) -> Config:
    """Ask for the token, model and projects folder and save them to *path*."""
    print_warning("First run detected. Let's configure Hermes.")
    token = ""
    while not token:
        token = operator.ask("API token")
        if not token:
            print_error("A token is required.")
    model = operator.ask("Default model", default="coder")
    projects_path = operator.ask("Projects folder", default="./hermes-projects")

    config = Config(token=token, default_model=model, projects_path=Path(projects_path))
    saved = config.save(path)
    print_success(f"Configuration saved to {saved}")
    return config


def show_settings(config: Config) -> None:
    table = Table(title="Settings", show_header=False)
    table.add_column("Setting", style="dim")
    table.add_column("Value")
    table.add_row("API token", config.masked_token)
    table.add_row("Model", config.default_model)
    table.add_row("Projects folder", str(config.projects_path))
    table.add_row("Endpoint", config.api.base_url)
    console.print(table)


def edit_settings(config: Config, operator: Operator, path: Path) -> Config:
    """Interactive settings editor used by the menu."""
    show_settings(config)
    choice = operator.choose(
        "Edit [t]oken, [m]odel, [p]rojects folder or [b]ack", ["t", "m", "p", "b"], default="b"
    )
    if choice == "t":
        config = config.model_copy(update={"token": operator.ask("New API token")})
    elif choice == "m":
        config = config.model_copy(
            update={"default_model": operator.ask("New model", default=config.default_model)}
        )
    elif choice == "p":
        new_path = operator.ask("New projects folder", default=str(config.projects_path))
        config = config.model_copy(update={"projects_path": Path(new_path)})
    else:
        return config
    config.save(path)
    print_success("Settings updated.")
    return config


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_new(config: Config, operator: Operator, idea: str | None = None) -> int:
    if not config.is_configured:
        print_error("No API token configured. Run 'hermes config --token <TOKEN>' first.")
        return 1

    while not idea:
        idea = operator.ask("Describe your project idea")
        if not idea:
            print_error("Please describe your idea.")

    pipeline = Pipeline(
        CompletionClient(config),
        operator,
        saver=ProjectSaver(config, operator),
        config=config.pipeline,
        model=config.default_model,
    )
    result = asyncio.run(pipeline.run(idea))
    return 0 if result.status in _OK_STATUSES else 1


def cmd_config(
    path: Path,
    token: str | None = None,
    model: str | None = None,
    projects_path: str | None = None,
) -> int:
    config = load_config(path, apply_env=False)
    updates: dict[str, object] = {}
    if token is not None:
        updates["token"] = token
    if model is not None:
        updates["default_model"] = model
    if projects_path is not None:
        updates["projects_path"] = Path(projects_path)

    if updates:
        config = config.model_copy(update=updates)
        saved = config.save(path)
        print_success(f"Configuration saved to {saved}")
    show_settings(config)
    return 0


def cmd_recent(config: Config) -> int:
    entries = load_recent_projects(config.recent_projects_path)
    if not entries:
        print_warning("No recent projects found.")
        return 0

    table = Table(title="Recent projects", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name")
    table.add_column("Path")
    table.add_column("Created")
    table.add_column("Stack")
    for number, entry in enumerate(entries, start=1):
        tech = entry.get("technologies") or {}
        stack = ", ".join([*tech.get("frontend", []), *tech.get("backend", [])])
        table.add_row(
            str(number),
            str(entry.get("name", "?")),
            str(entry.get("path", "?")),
            str(entry.get("created_at", ""))[:19],
            stack or "-",
        )
    console.print(table)
    return 0


def cmd_test_api(config: Config) -> int:
    """Send a trivial prompt and report whether the endpoint answered."""
    if not config.is_configured:
        print_error("No API token configured. Run 'hermes config --token <TOKEN>' first.")
        return 1

    console.print(f"[dim]Token: {config.masked_token}[/dim]")
    console.print(f"[dim]Model: {config.default_model}[/dim]")
    console.print(f"[dim]Endpoint: {config.api.base_url}[/dim]")
    with create_progress() as progress:
        progress.add_task("Testing the API connection...", total=None)
        healthy = asyncio.run(CompletionClient(config).health_check())

    if healthy:
        print_success("Connection successful.")
        return 0
    print_error("Connection failed. Check the token, the model and the endpoint.")
    return 1


def show_about() -> None:
    console.print(
        Panel(
            f"Version {__version__}\n"
            "AI-assisted CLI that turns product ideas into working project scaffolds.",
            title="About Hermes",
            border_style="cyan",
        )
    )


def interactive_menu(config: Config, operator: Operator, path: Path) -> int:
    while True:
        console.print()
        for key, label in MENU_OPTIONS:
            console.print(f"  [bold cyan]{key}.[/bold cyan] {label}")
        choice = operator.choose("Select an option", [key for key, _ in MENU_OPTIONS], default="1")

        if choice == "1":
            cmd_new(config, operator)
        elif choice == "2":
            cmd_recent(config)
        elif choice == "3":
            config = edit_settings(config, operator, path)
        elif choice == "4":
            cmd_test_api(config)
        elif choice == "5":
            show_about()
        else:
            console.print("[green]Goodbye![/green]")
            return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hermes",
        description="Hermes -- turn a product idea into a generated project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  hermes\n"
            "  hermes new \"A todo app with reminders\"\n"
            "  hermes config --token <TOKEN> --model coder\n"
            "  hermes recent\n"
            "  hermes test-api\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"hermes {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Configuration file (default: {DEFAULT_CONFIG_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command")

    new = subparsers.add_parser("new", help="Generate a project from an idea")
    new.add_argument("idea", nargs="?", default=None, help="Project idea (prompted if omitted)")

    config = subparsers.add_parser("config", help="Show or edit the settings")
    config.add_argument("--token", default=None, help="API token")
    config.add_argument("--model", default=None, help="Default model")
    config.add_argument("--projects-path", default=None, help="Folder for generated projects")

    subparsers.add_parser("recent", help="List recently generated projects")
    subparsers.add_parser("test-api", help="Check the connection to the completion endpoint")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``hermes`` and ``python -m hermes``."""
    args = build_parser().parse_args(argv)
    operator = ConsoleOperator()

    try:
        try:
            if args.command == "config":
                return cmd_config(args.config, args.token, args.model, args.projects_path)
            config = load_config(args.config)
        except (OSError, ValueError) as exc:
            print_error(f"Configuration file {args.config}: {exc}")
            return 1

        if args.command == "new":
            return cmd_new(config, operator, args.idea)
        if args.command == "recent":
            return cmd_recent(config)
        if args.command == "test-api":
            return cmd_test_api(config)

        console.print(
            Panel(
                "[bold cyan]HERMES[/bold cyan]\nTurning ideas into working code",
                border_style="cyan",
            )
        )
        if not Config.exists(args.config) and not config.is_configured:
            config = Config.from_env(first_run_setup(operator, args.config))
        return interactive_menu(config, operator, args.config)
    except KeyboardInterrupt:
        console.print()
        print_warning("Interrupted.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
