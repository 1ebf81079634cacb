"""UI agent: frontend entry points, styles and components."""

from __future__ import annotations

import textwrap
from dataclasses import dataclass

from hermes.agents.base import CodeAgent, describe_project
from hermes.models import AgentTag, Artifact, ProjectView, RefinedProject, WorkItem
from hermes.renderer import pascal_case, slugify

UI_TYPES = frozenset({"component", "page", "style", "entry", "view", "asset"})


@dataclass(frozen=True)
class UiFlavor:
    """Base files and component layout for one frontend technology."""

    name: str
    base: tuple[tuple[str, str, str], ...]  # (template, output path, type)
    component_template: str
    component_dir: str
    component_ext: str

    def component_path(self, item_name: str) -> str:
        stem = pascal_case(item_name) if self.component_ext != ".html" else slugify(item_name)
        return f"{self.component_dir}/{stem or 'Component'}{self.component_ext}"


REACT = UiFlavor(
    name="react",
    base=(
        ("ui/react_index.html.j2", "public/index.html", "asset"),
        ("ui/react_index.js.j2", "src/index.js", "entry"),
        ("ui/react_app.js.j2", "src/App.js", "component"),
        ("ui/app.css.j2", "src/App.css", "style"),
    ),
    component_template="ui/react_component.js.j2",
    component_dir="src/components",
    component_ext=".js",
)

VUE = UiFlavor(
    name="vue",
    base=(
        ("ui/vue_main.js.j2", "src/main.js", "entry"),
        ("ui/vue_app.vue.j2", "src/App.vue", "component"),
        ("ui/app.css.j2", "src/assets/main.css", "style"),
    ),
    component_template="ui/vue_component.vue.j2",
    component_dir="src/components",
    component_ext=".vue",
)

STATIC = UiFlavor(
    name="html",
    base=(
        ("ui/static_index.html.j2", "public/index.html", "page"),
        ("ui/static_app.js.j2", "public/js/app.js", "entry"),
        ("ui/app.css.j2", "public/css/style.css", "style"),
    ),
    component_template="ui/html_component.html.j2",
    component_dir="public/components",
    component_ext=".html",
)

_PROMPT = textwrap.dedent("""\
    Implement the frontend module "{name}" using {flavor}.

    Module description: {description}

    Project:
    {project}

    Files already generated:
    {existing}

    Produce components, pages and styles for this module only. Keep
    components small and accessible.
""")


def ui_flavor(refined: RefinedProject) -> UiFlavor:
    """Vue when named, plain HTML for any other non-React frontend, React otherwise."""
    tech = refined.technologies
    if tech.mentions("frontend", "vue"):
        return VUE
    if tech.mentions("frontend", "react") or tech.mentions("frontend", "next"):
        return REACT
    if tech.frontend:
        return STATIC
    return REACT


def is_first_ui_module(context: ProjectView) -> bool:
    """``True`` while no UI artifact has been produced yet."""
    return not any(artifact.type in UI_TYPES for artifact in context.files)


class UIAgent(CodeAgent):
    """Generates the user interface."""

    tag = AgentTag.UI
    label = "UI"

    system_prompt = textwrap.dedent("""\
        You are a senior frontend developer. You build responsive, accessible
        interfaces from small reusable components with clear state handling.
        Match the project's chosen frontend technology.
    """)

    default_instructions = ("Start the client with 'npm run client'",)

    def build_prompt(self, item: WorkItem, context: ProjectView) -> str:
        refined = context.refined_project
        existing = "\n".join(f"- {path}" for path in context.file_paths) or "- (none)"
        return _PROMPT.format(
            name=item.name,
            flavor=", ".join(refined.technologies.frontend) or ui_flavor(refined).name,
            description=item.description,
            project=describe_project(refined),
            existing=existing,
        )

    def base_files(self, context: ProjectView) -> list[Artifact]:
        values = self.context_for(None, context)
        return [
            self.renderer.artifact(template, path, file_type, values)
            for template, path, file_type in ui_flavor(context.refined_project).base
        ]

    def fallback_files(self, item: WorkItem, context: ProjectView) -> list[Artifact]:
        flavor = ui_flavor(context.refined_project)
        return [
            self.renderer.artifact(
                flavor.component_template,
                flavor.component_path(item.name),
                "component",
                self.context_for(item, context),
            )
        ]

    def merge(
        self,
        files: list[Artifact],
        item: WorkItem,
        context: ProjectView,
    ) -> list[Artifact]:
        if not is_first_ui_module(context):
            return files
        produced = {artifact.path for artifact in files}
        base = [f for f in self.base_files(context) if f.path not in produced]
        return base + files
