"""Unit tests for UIAgent (hermes.agents.ui)."""

from __future__ import annotations

import pytest

from hermes.agents import UIAgent
from hermes.agents.ui import REACT, STATIC, VUE, is_first_ui_module, ui_flavor
from hermes.models import (
    Artifact,
    ProjectContext,
    RefinedProject,
    StageResult,
    Technologies,
)
from hermes.planner import build_plan

from doubles import FakeClient, files_response


def _context_with(project: RefinedProject, **tech) -> ProjectContext:
    refined = project.model_copy(update={"technologies": Technologies(**tech)})
    return ProjectContext(refined_project=refined, plan=build_plan(refined))


def _task_list(context: ProjectContext):
    return next(item for item in context.plan if item.name == "Task List")


class TestFlavor:
    @pytest.mark.unit
    def test_react(self, sample_refined: RefinedProject):
        assert ui_flavor(sample_refined) is REACT

    @pytest.mark.unit
    def test_vue(self, sample_refined: RefinedProject):
        context = _context_with(sample_refined, frontend=["Vue.js"])
        assert ui_flavor(context.refined_project) is VUE

    @pytest.mark.unit
    def test_plain_html(self, sample_refined: RefinedProject):
        context = _context_with(sample_refined, frontend=["HTML", "CSS"])
        assert ui_flavor(context.refined_project) is STATIC

    @pytest.mark.unit
    def test_no_frontend_defaults_to_react(self, sample_refined: RefinedProject):
        context = _context_with(sample_refined, backend=["Node.js"])
        assert ui_flavor(context.refined_project) is REACT

    @pytest.mark.unit
    def test_component_paths(self):
        assert REACT.component_path("Task List") == "src/components/TaskList.js"
        assert VUE.component_path("Task List") == "src/components/TaskList.vue"
        assert STATIC.component_path("Task List") == "public/components/task-list.html"


class TestUIAgent:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_first_module_gets_react_base(self, sample_context: ProjectContext):
        client = FakeClient([files_response("src/components/TaskList.js")])
        result = await UIAgent(client).execute(_task_list(sample_context), sample_context.view())

        assert [f.path for f in result.files] == [
            "public/index.html",
            "src/index.js",
            "src/App.js",
            "src/App.css",
            "src/components/TaskList.js",
        ]
        assert "using React" in client.calls[0][1].text

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_later_modules_skip_base(self, sample_context: ProjectContext):
        sample_context.append(StageResult(files=[Artifact(path="src/App.js", type="component")]))
        assert is_first_ui_module(sample_context.view()) is False

        client = FakeClient([files_response("src/components/TaskList.js")])
        result = await UIAgent(client).execute(_task_list(sample_context), sample_context.view())
        assert [f.path for f in result.files] == ["src/components/TaskList.js"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_vue_fallback_component(self, sample_refined: RefinedProject):
        context = _context_with(sample_refined, frontend=["Vue.js"], backend=["Express"])
        client = FakeClient(["nope", "nope"])
        result = await UIAgent(client).execute(_task_list(context), context.view())

        assert result.degraded is True
        paths = [f.path for f in result.files]
        assert paths == ["src/main.js", "src/App.vue", "src/assets/main.css",
                         "src/components/TaskList.vue"]
        assert "name: 'TaskList'" in result.files[-1].content
