"""Stage agent interface and the shared code-generation flow.

Every code-generating agent asks the model for a :class:`~hermes.models.FilesPayload`,
merges the answer with its own default files, and degrades to deterministic
templated output when the model cannot deliver:

* malformed answer (after one repair request) -> fallback files, ``degraded=True``;
* transport failure after retries -> :class:`~hermes.errors.StageFailed`
  carrying the same fallback files;
* missing credential -> :class:`~hermes.errors.ConfigurationError` propagates.
"""

from __future__ import annotations

import json
import textwrap
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import Any

from hermes.decoder import ResponseDecoder
from hermes.errors import MalformedPayload, StageFailed, TransportError
from hermes.llm_client import CompletionClient
from hermes.models import (
    AgentTag,
    Artifact,
    ConversationTurn,
    FilesPayload,
    ProjectView,
    RefinedProject,
    StageResult,
    WorkItem,
)
from hermes.renderer import TemplateRenderer, pascal_case
from hermes.utils import create_progress, print_warning, sanitize_name

FILES_RESPONSE_FORMAT = textwrap.dedent("""\
    Answer ONLY with a JSON object of this exact shape:
    {
      "files": [
        {"path": "relative/path/to/file.ext", "content": "full file content", "type": "route"}
      ],
      "instructions": ["one setup instruction per entry"]
    }
    Paths are relative to the project root. Do not wrap the JSON in markdown.
""")


def template_context(
    refined: RefinedProject,
    item: WorkItem | None = None,
    paths: Iterable[str] = (),
    **extra: Any,
) -> dict[str, Any]:
    """Variables available to every template under ``hermes/templates/``."""
    tech = refined.technologies
    item_name = item.name if item else refined.display_name
    context: dict[str, Any] = {
        "display_name": refined.display_name,
        "description": refined.description or refined.architecture,
        "architecture": refined.architecture,
        "frontend": list(tech.frontend),
        "backend": list(tech.backend),
        "database": tech.database,
        "other": list(tech.other),
        "modules": list(refined.modules),
        "project_slug": sanitize_name(refined.display_name) or "app",
        "item_name": item_name,
        "item_description": item.description if item else refined.description,
        "component_name": pascal_case(item_name) or "Component",
        "files": list(paths),
        "routes": [],
        "instructions": [],
    }
    context.update(extra)
    return context


def describe_project(refined: RefinedProject) -> str:
    """Compact JSON summary of the refined project used inside prompts."""
    return json.dumps(refined.model_dump(mode="json"), indent=2, ensure_ascii=False)


def merge_missing(primary: Sequence[Artifact], defaults: Iterable[Artifact]) -> list[Artifact]:
    """Return *primary* followed by every default whose path it does not already have."""
    seen = {artifact.path for artifact in primary}
    merged = list(primary)
    for artifact in defaults:
        if artifact.path not in seen:
            merged.append(artifact)
            seen.add(artifact.path)
    return merged


class Agent:
    """Anything that talks to the completion endpoint on behalf of a stage."""

    label: str = "Agent"

    def __init__(self, client: CompletionClient, model: str | None = None) -> None:
        self.client = client
        self.decoder = ResponseDecoder(client)
        self.model = model


class StageAgent(Agent, ABC):
    """Polymorphic producer of artifacts for one kind of work item."""

    tag: AgentTag

    def __init__(
        self,
        client: CompletionClient,
        renderer: TemplateRenderer | None = None,
        model: str | None = None,
    ) -> None:
        super().__init__(client, model=model)
        self.renderer = renderer or TemplateRenderer()

    @abstractmethod
    async def execute(self, item: WorkItem, context: ProjectView) -> StageResult:
        """Produce the artifacts for *item* given everything generated so far."""


class CodeAgent(StageAgent):
    """Template method for agents that answer with a :class:`FilesPayload`.

    Subclasses supply the prompts, their fallback files and, optionally, how
    the model's files are merged with default files.
    """

    system_prompt: str = ""
    default_instructions: tuple[str, ...] = ()

    @abstractmethod
    def build_prompt(self, item: WorkItem, context: ProjectView) -> str:
        """User prompt for *item*."""

    @abstractmethod
    def fallback_files(self, item: WorkItem, context: ProjectView) -> list[Artifact]:
        """Deterministic files for *item* when the model cannot deliver."""

    def merge(
        self,
        files: list[Artifact],
        item: WorkItem,
        context: ProjectView,
    ) -> list[Artifact]:
        return files

    def instructions(self, model_instructions: list[str]) -> list[str]:
        return model_instructions or list(self.default_instructions)

    def context_for(
        self, item: WorkItem | None, context: ProjectView, **extra: Any
    ) -> dict[str, Any]:
        return template_context(context.refined_project, item, context.file_paths, **extra)

    async def execute(self, item: WorkItem, context: ProjectView) -> StageResult:
        turns = [
            ConversationTurn.system(self.system_prompt),
            ConversationTurn.user(f"{self.build_prompt(item, context)}\n\n{FILES_RESPONSE_FORMAT}"),
        ]

        try:
            with create_progress() as progress:
                progress.add_task(f"{self.label}: {item.name}", total=None)
                payload = await self.decoder.request_structured(
                    turns, FilesPayload, model=self.model
                )
        except MalformedPayload as exc:
            print_warning(f"  {self.label} used default files for '{item.name}': {exc}")
            return StageResult(
                files=self.merge(self.fallback_files(item, context), item, context),
                instructions=list(self.default_instructions),
                degraded=True,
            )
        except TransportError as exc:
            raise StageFailed(
                item.name,
                str(exc),
                degraded_files=self.merge(self.fallback_files(item, context), item, context),
            ) from exc

        return StageResult(
            files=self.merge(list(payload.files), item, context),
            instructions=self.instructions(list(payload.instructions)),
        )
