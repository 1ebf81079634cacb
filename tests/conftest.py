"""Shared pytest fixtures for the Hermes test suite.

Provides reusable fixtures for:
- An isolated configuration pointing at temporary folders
- A sample refined project and its project context
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from hermes.config import ApiConfig, Config
from hermes.models import (
    Module,
    ModuleKind,
    Priority,
    ProjectContext,
    ProjectStructure,
    RefinedProject,
    Technologies,
)
from hermes.planner import build_plan
from hermes.renderer import TemplateRenderer


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Configured credentials, temporary folders and no backoff delay."""
    return Config(
        token="test-token-1234",
        projects_path=tmp_path / "projects",
        recent_projects_path=tmp_path / "recent.json",
        api=ApiConfig(backoff_base=0.0),
    )


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


# ---------------------------------------------------------------------------
# Sample project
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_refined() -> RefinedProject:
    """A small React + Express + MongoDB task manager."""
    return RefinedProject(
        name="TaskFlow",
        description="Task manager with reminders",
        architecture="Full-stack Web Application",
        technologies=Technologies(
            frontend=["React"],
            backend=["Node.js", "Express"],
            database="MongoDB",
            other=["Jest"],
        ),
        modules=[
            Module(
                name="Task List",
                description="List and filter tasks",
                kind=ModuleKind.FRONTEND,
                priority=Priority.HIGH,
            ),
            Module(
                name="Tasks API",
                description="CRUD endpoints for tasks",
                kind=ModuleKind.BACKEND,
                priority=Priority.HIGH,
            ),
            Module(
                name="Auth",
                description="Login and sessions",
                kind=ModuleKind.BACKEND,
                priority=Priority.LOW,
            ),
            Module(
                name="Shared Utils",
                description="Date helpers",
                kind=ModuleKind.SHARED,
                priority=Priority.MEDIUM,
            ),
        ],
        structure=ProjectStructure(folders=["src", "routes"], main_files=["server.js"]),
        dependencies=["express", "react"],
    )


@pytest.fixture
def sample_context(sample_refined: RefinedProject) -> ProjectContext:
    return ProjectContext(refined_project=sample_refined, plan=build_plan(sample_refined))


@pytest.fixture
def refined_json(sample_refined: RefinedProject) -> str:
    """The sample project as the refine stage's model would return it."""
    return json.dumps(sample_refined.model_dump(mode="json"))
