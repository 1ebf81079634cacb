"""Project persistence.

Writes the accumulated artifacts of a run under the configured projects
folder, records a ``.hermes-metadata.json`` next to them and keeps the list
of recently generated projects up to date.
"""

from __future__ import annotations

import asyncio
import re
import shutil
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from hermes import __version__
from hermes.config import Config
from hermes.models import Artifact, ConversationTurn, ProjectContext, Role
from hermes.operator import Operator
from hermes.utils import (
    console,
    load_json_list,
    print_error,
    print_success,
    print_warning,
    sanitize_name,
    save_json,
)

METADATA_FILENAME = ".hermes-metadata.json"
MAX_RECENT_PROJECTS = 10
PROJECT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def suggest_name(context: ProjectContext) -> str:
    refined = context.refined_project
    return sanitize_name(refined.name) or sanitize_name(refined.architecture) or "hermes-project"


def build_metadata(
    context: ProjectContext,
    idea_conversation: Sequence[ConversationTurn] | None = None,
) -> dict[str, Any]:
    """Metadata written next to the generated files."""
    refined = context.refined_project
    return {
        "name": refined.display_name,
        "description": refined.description,
        "architecture": refined.architecture,
        "technologies": refined.technologies.model_dump(mode="json"),
        "modules": [module.model_dump(mode="json") for module in refined.modules],
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "hermes_version": __version__,
        "files": [{"path": f.path, "type": f.type} for f in context.files],
        "instructions": list(context.instructions),
        "idea_conversation": [
            turn.to_message()
            for turn in (idea_conversation or [])
            if turn.role is not Role.SYSTEM
        ],
    }


def load_recent_projects(path: str | Path) -> list[dict[str, Any]]:
    """Recently saved projects, newest first. Missing or unreadable file -> ``[]``."""
    try:
        entries = load_json_list(path)
    except (OSError, ValueError) as exc:
        print_warning(f"Could not read recent projects from {path}: {exc}")
        return []
    return [entry for entry in entries if isinstance(entry, dict)]


class ProjectSaver:
    """Writes a finished run to disk after asking the operator where."""

    def __init__(self, config: Config, operator: Operator) -> None:
        self.config = config
        self.operator = operator

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def ask_name(self, suggested: str) -> str:
        while True:
            name = self.operator.ask("Project name (folder)", default=suggested)
            if PROJECT_NAME_PATTERN.match(name):
                return name
            print_error("Use only letters, numbers, hyphens and underscores.")

    def ask_path(self, name: str) -> Path:
        default_path = Path(self.config.projects_path) / name
        if self.operator.confirm(f"Save to {default_path}?", default=True):
            return default_path
        while True:
            custom = self.operator.ask("Custom folder")
            if custom:
                return Path(custom).expanduser().resolve() / name
            print_error("A folder is required.")

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    @staticmethod
    def _target(root: Path, artifact: Artifact) -> Path | None:
        """Absolute destination of *artifact*, or ``None`` if it escapes *root*."""
        target = (root / artifact.path).resolve()
        if target != root and root in target.parents:
            return target
        return None

    async def write_files(self, root: Path, files: Sequence[Artifact]) -> int:
        """Write *files* under *root*; returns how many were written."""
        root = root.resolve()
        loop = asyncio.get_running_loop()
        written = 0
        for artifact in files:
            target = self._target(root, artifact)
            if target is None:
                print_warning(f"  Skipped {artifact.path}: outside the project folder")
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            await loop.run_in_executor(None, target.write_text, artifact.content, "utf-8")
            console.print(f"  [dim]+ {artifact.path}[/dim]")
            written += 1
        return written

    async def remember(self, project_path: Path, metadata: dict[str, Any]) -> None:
        """Prepend *project_path* to the recent projects file, de-duplicated."""
        recent_path = self.config.recent_projects_path
        path_str = str(project_path.resolve())
        entries = [e for e in load_recent_projects(recent_path) if e.get("path") != path_str]
        entries.insert(
            0,
            {
                "name": metadata["name"],
                "path": path_str,
                "created_at": metadata["generated_at"],
                "technologies": metadata["technologies"],
            },
        )
        await save_json(entries[:MAX_RECENT_PROJECTS], recent_path)

    async def save(
        self,
        context: ProjectContext,
        idea_conversation: Sequence[ConversationTurn] | None = None,
    ) -> Path | None:
        """Save every artifact in *context*.

        Returns:
            The project folder, or ``None`` when the operator declined to
            overwrite an existing folder.
        """
        name = self.ask_name(suggest_name(context))
        project_path = self.ask_path(name)

        if project_path.exists():
            if not self.operator.confirm(
                f"{project_path} already exists. Overwrite?", default=False
            ):
                print_warning("Save cancelled; the existing folder was left untouched.")
                return None
            shutil.rmtree(project_path)

        console.print(f"\n[bold blue]Saving project to {project_path}[/bold blue]\n")
        project_path.mkdir(parents=True, exist_ok=True)
        await self.write_files(project_path, context.files)

        metadata = build_metadata(context, idea_conversation)
        await save_json(metadata, project_path / METADATA_FILENAME)
        await self.remember(project_path, metadata)

        print_success(f"Project saved: {project_path}")
        return project_path
