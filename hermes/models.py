"""Pydantic v2 models for Hermes.

Defines the conversation turns exchanged with the completion endpoint, the
refined project description produced by the refine stage, the execution plan
work items, and the artifacts every code-generating agent returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Role(str, Enum):
    """Author of a conversation turn."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ModuleKind(str, Enum):
    """Layer a refined module belongs to."""
    FRONTEND = "frontend"
    BACKEND = "backend"
    SHARED = "shared"


class Priority(str, Enum):
    """Module priority. Ranked high > medium > low by the plan builder."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class WorkKind(str, Enum):
    """Classification of an execution plan entry."""
    SETUP = "setup"
    SHARED = "shared"
    BACKEND = "backend"
    FRONTEND = "frontend"
    INTEGRATION = "integration"


class AgentTag(str, Enum):
    """Stage agent a work item is dispatched to."""
    SETUP = "setup"
    SHARED = "shared"
    BACKEND = "backend"
    UI = "ui"
    ASSEMBLER = "assembler"


PRIORITY_RANK: dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


def _as_list(value: Any) -> Any:
    """Wrap a bare string in a list; models often answer ``"React"`` for ``["React"]``."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return value


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------

class ConversationTurn(BaseModel):
    """One message of a conversation with the completion endpoint."""
    role: Role = Field(..., description="Who authored the turn")
    text: str = Field(..., description="Turn content")

    def to_message(self) -> dict[str, str]:
        """Wire representation expected by ``/chat/completions``."""
        return {"role": self.role.value, "content": self.text}

    @classmethod
    def system(cls, text: str) -> "ConversationTurn":
        return cls(role=Role.SYSTEM, text=text)

    @classmethod
    def user(cls, text: str) -> "ConversationTurn":
        return cls(role=Role.USER, text=text)

    @classmethod
    def assistant(cls, text: str) -> "ConversationTurn":
        return cls(role=Role.ASSISTANT, text=text)


# ---------------------------------------------------------------------------
# Refined project
# ---------------------------------------------------------------------------

class Module(BaseModel):
    """A unit of work identified by the refine stage."""
    name: str = Field(..., min_length=1, description="Module name")
    description: str = Field(default="", description="Concise module description")
    kind: ModuleKind = Field(..., description="Layer the module belongs to")
    priority: Priority = Field(default=Priority.MEDIUM, description="Module priority")

    @field_validator("kind", "priority", mode="before")
    @classmethod
    def _lowercase(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class Technologies(BaseModel):
    """Technology selection per layer."""
    frontend: list[str] = Field(default_factory=list)
    backend: list[str] = Field(default_factory=list)
    database: str = Field(default="")
    other: list[str] = Field(default_factory=list)

    @field_validator("frontend", "backend", "other", mode="before")
    @classmethod
    def _wrap_strings(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("database", mode="before")
    @classmethod
    def _join_database(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, list):
            return ", ".join(str(v) for v in value)
        return value

    def mentions(self, layer: str, keyword: str) -> bool:
        """Case-insensitive check whether *keyword* appears in *layer*."""
        value = getattr(self, layer)
        haystack = " ".join(value) if isinstance(value, list) else value
        return keyword.lower() in haystack.lower()


class ProjectStructure(BaseModel):
    """Folder and file hints for the generated tree."""
    folders: list[str] = Field(default_factory=list)
    main_files: list[str] = Field(default_factory=list)

    @field_validator("folders", "main_files", mode="before")
    @classmethod
    def _wrap_strings(cls, value: Any) -> Any:
        return _as_list(value)


class RefinedProject(BaseModel):
    """Technical description of the project produced by the refine stage.

    ``architecture`` must be non-empty, ``technologies`` must be present, and
    ``modules`` must contain at least one entry. Any violation rejects the
    whole payload.
    """
    name: str = Field(default="", description="Suggested project name")
    description: str = Field(default="", description="One-paragraph project summary")
    architecture: str = Field(..., min_length=1, description="Architecture label, e.g. 'SPA'")
    technologies: Technologies = Field(..., description="Technology selection per layer")
    modules: list[Module] = Field(..., min_length=1, description="Ordered project modules")
    structure: ProjectStructure = Field(default_factory=ProjectStructure)
    dependencies: list[str] = Field(default_factory=list)

    @field_validator("architecture")
    @classmethod
    def _architecture_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("architecture must not be blank")
        return value.strip()

    @field_validator("dependencies", mode="before")
    @classmethod
    def _wrap_dependencies(cls, value: Any) -> Any:
        return _as_list(value)

    @property
    def display_name(self) -> str:
        """Project name, falling back to the architecture label."""
        return self.name or self.architecture


# ---------------------------------------------------------------------------
# Execution plan
# ---------------------------------------------------------------------------

class WorkItem(BaseModel):
    """One code-generation step of the execution plan."""
    name: str = Field(..., description="Step name shown to the operator")
    kind: WorkKind = Field(..., description="Step classification")
    description: str = Field(default="", description="What the step produces")
    agent_tag: AgentTag = Field(..., description="Agent the step is dispatched to")
    priority: Optional[Priority] = Field(default=None, description="Module priority, if any")


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------

class Artifact(BaseModel):
    """A generated file: relative path, content, and type tag."""
    path: str = Field(..., min_length=1, description="Relative file path")
    content: str = Field(default="", description="File content")
    type: str = Field(default="file", description="Type tag, e.g. 'config', 'route'")

    @field_validator("path")
    @classmethod
    def _relative_path(cls, value: str) -> str:
        cleaned = value.strip().lstrip("/")
        if not cleaned:
            raise ValueError("path must not be blank")
        return cleaned

    @field_validator("content", mode="before")
    @classmethod
    def _content_to_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value


class FilesPayload(BaseModel):
    """Structured response every code-generating agent asks the model for."""
    files: list[Artifact] = Field(..., min_length=1)
    instructions: list[str] = Field(default_factory=list)

    @field_validator("instructions", mode="before")
    @classmethod
    def _wrap_instructions(cls, value: Any) -> Any:
        return _as_list(value)


class StageResult(BaseModel):
    """What a stage agent returns for one work item."""
    files: list[Artifact] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    degraded: bool = Field(default=False, description="True when produced by the fallback path")


# ---------------------------------------------------------------------------
# Project context
# ---------------------------------------------------------------------------

@dataclass
class ProjectContext:
    """Accumulator owned by the pipeline for the lifetime of one run.

    Only the owner calls :meth:`append`; stage agents get a :class:`ProjectView`
    from :meth:`view` instead.
    """

    refined_project: RefinedProject
    plan: list[WorkItem]
    _files: list[Artifact] = field(default_factory=list)
    _instructions: list[str] = field(default_factory=list)

    @property
    def files(self) -> tuple[Artifact, ...]:
        return tuple(self._files)

    @property
    def instructions(self) -> tuple[str, ...]:
        return tuple(self._instructions)

    @property
    def file_paths(self) -> list[str]:
        return [f.path for f in self._files]

    def append(self, result: StageResult) -> int:
        """Append a stage result, preserving order. Returns the files added."""
        self._files.extend(result.files)
        self._instructions.extend(result.instructions)
        return len(result.files)

    def view(self) -> "ProjectView":
        return ProjectView(self)


class ProjectView:
    """Read-only window onto a :class:`ProjectContext`.

    Reflects later appends to the underlying context but offers no way to
    modify it.
    """

    __slots__ = ("_context",)

    def __init__(self, context: ProjectContext) -> None:
        self._context = context

    @property
    def refined_project(self) -> RefinedProject:
        return self._context.refined_project

    @property
    def plan(self) -> tuple[WorkItem, ...]:
        return tuple(self._context.plan)

    @property
    def files(self) -> tuple[Artifact, ...]:
        return self._context.files

    @property
    def instructions(self) -> tuple[str, ...]:
        return self._context.instructions

    @property
    def file_paths(self) -> list[str]:
        return self._context.file_paths
