"""Unit tests for TemplateRenderer (hermes.renderer)."""

from __future__ import annotations

from pathlib import Path

import pytest
from jinja2 import UndefinedError

from hermes.agents.base import template_context
from hermes.models import RefinedProject
from hermes.renderer import TemplateRenderer, camel_case, pascal_case, slugify


class TestFilters:
    @pytest.mark.unit
    def test_slugify(self):
        assert slugify("Task List (v2)") == "task-list-v2"

    @pytest.mark.unit
    def test_pascal_case(self):
        assert pascal_case("task-list_view now") == "TaskListViewNow"

    @pytest.mark.unit
    def test_camel_case(self):
        assert camel_case("task list") == "taskList"
        assert camel_case("") == ""


class TestRendering:
    @pytest.mark.unit
    def test_filters_are_registered(self, tmp_path: Path):
        (tmp_path / "f.j2").write_text("{{ name | pascal_case }} {{ name | camel_case }}")
        assert TemplateRenderer(tmp_path).render("f.j2", {"name": "user profile"}) == (
            "UserProfile userProfile"
        )

    @pytest.mark.unit
    def test_missing_variable_is_an_error(self, renderer: TemplateRenderer):
        with pytest.raises(UndefinedError):
            renderer.render("setup/README.md.j2", {})

    @pytest.mark.unit
    def test_artifact(self, renderer: TemplateRenderer, sample_refined: RefinedProject):
        artifact = renderer.artifact(
            "setup/README.md.j2", "README.md", "documentation", template_context(sample_refined)
        )
        assert artifact.path == "README.md"
        assert artifact.type == "documentation"
        assert artifact.content.startswith("# TaskFlow")
        assert "**Tasks API** (backend, high)" in artifact.content

    @pytest.mark.unit
    def test_every_template_renders(
        self, renderer: TemplateRenderer, sample_refined: RefinedProject
    ):
        context = template_context(
            sample_refined,
            paths=["server.js", "routes/tasks.js"],
            routes=["tasks"],
            instructions=["npm install"],
        )
        templates = sorted(
            p.relative_to(renderer.template_dir).as_posix()
            for p in renderer.template_dir.rglob("*.j2")
        )
        assert len(templates) > 20
        for template in templates:
            assert renderer.render(template, context).strip(), template

    @pytest.mark.unit
    def test_ci_workflow_keeps_expression(
        self, renderer: TemplateRenderer, sample_refined: RefinedProject
    ):
        content = renderer.render("assembler/ci.yml.j2", template_context(sample_refined))
        assert "${{ matrix.node }}" in content

    @pytest.mark.unit
    def test_custom_template_dir(self, tmp_path: Path):
        (tmp_path / "hello.j2").write_text("Hello {{ who }}", encoding="utf-8")
        assert TemplateRenderer(tmp_path).render("hello.j2", {"who": "Hermes"}) == "Hello Hermes"
