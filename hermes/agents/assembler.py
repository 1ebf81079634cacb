"""Assembler agent: wires the modules together and adds tests, docs and build config."""

from __future__ import annotations

import posixpath
import textwrap

from hermes.agents.base import CodeAgent, describe_project, merge_missing
from hermes.models import AgentTag, Artifact, ProjectView, WorkItem

_PROMPT = textwrap.dedent("""\
    Integrate every module of this project.

    Project:
    {project}

    Files already generated:
    {existing}

    Connect the frontend to the backend, register every route with the server
    and add integration tests. Only return new or changed files.
""")

# (template, output path, type) always added unless the model produced the path
_INTEGRATION_FILES: tuple[tuple[str, str, str], ...] = (
    ("assembler/env.development.j2", ".env.development", "config"),
    ("assembler/jest.config.js.j2", "jest.config.js", "config"),
    ("assembler/Dockerfile.j2", "Dockerfile", "config"),
    ("assembler/docker-compose.yml.j2", "docker-compose.yml", "config"),
    ("assembler/ci.yml.j2", ".github/workflows/ci.yml", "config"),
)


def route_names(paths: list[str]) -> list[str]:
    """Stems of the files under ``routes/``, in generation order."""
    names: list[str] = []
    for path in paths:
        if path.startswith("routes/"):
            stem = posixpath.splitext(posixpath.basename(path))[0]
            if stem and stem not in names:
                names.append(stem)
    return names


class AssemblerAgent(CodeAgent):
    """Produces the integration layer and the final setup instructions."""

    tag = AgentTag.ASSEMBLER
    label = "Assembler"

    system_prompt = textwrap.dedent("""\
        You are a software architect doing the final integration of a generated
        project. You connect modules, configure build and test tooling, and
        write the developer documentation.
    """)

    default_instructions = (
        "Install dependencies: npm install",
        "Configure environment variables: cp .env.example .env",
        "Start in development mode: npm run dev",
        "Run the tests: npm test",
        "Or run everything with Docker: docker compose up --build",
    )

    def build_prompt(self, item: WorkItem, context: ProjectView) -> str:
        existing = "\n".join(f"- {path}" for path in context.file_paths) or "- (none)"
        return _PROMPT.format(
            project=describe_project(context.refined_project), existing=existing
        )

    def instructions(self, model_instructions: list[str]) -> list[str]:
        return model_instructions + [
            step for step in self.default_instructions if step not in model_instructions
        ]

    def integration_files(self, item: WorkItem, context: ProjectView) -> list[Artifact]:
        tech = context.refined_project.technologies
        paths = context.file_paths
        values = self.context_for(
            item,
            context,
            routes=route_names(paths),
            instructions=[*context.instructions, *self.default_instructions],
        )

        files: list[Artifact] = []
        if tech.frontend and tech.backend:
            files.append(
                self.renderer.artifact(
                    "assembler/api_service.js.j2", "src/services/api.js", "service", values
                )
            )
        if tech.backend:
            files.append(
                self.renderer.artifact(
                    "assembler/api.test.js.j2", "tests/api.test.js", "test", values
                )
            )
            files.append(
                self.renderer.artifact(
                    "assembler/API.md.j2", "docs/API.md", "documentation", values
                )
            )
        files.append(
            self.renderer.artifact(
                "assembler/DEVELOPMENT.md.j2", "docs/DEVELOPMENT.md", "documentation", values
            )
        )
        files.extend(
            self.renderer.artifact(template, path, file_type, values)
            for template, path, file_type in _INTEGRATION_FILES
        )
        return files

    def fallback_files(self, item: WorkItem, context: ProjectView) -> list[Artifact]:
        return self.integration_files(item, context)

    def merge(
        self,
        files: list[Artifact],
        item: WorkItem,
        context: ProjectView,
    ) -> list[Artifact]:
        return merge_missing(files, self.integration_files(item, context))
