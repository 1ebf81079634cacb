"""Setup agent: project scaffold and configuration files."""

from __future__ import annotations

import json
import textwrap

from hermes.agents.base import CodeAgent, describe_project, merge_missing
from hermes.models import AgentTag, Artifact, ProjectView, RefinedProject, WorkItem

# keyword found in a technology layer -> npm packages it needs
_RUNTIME_PACKAGES: dict[str, dict[str, str]] = {
    "express": {"express": "^4.18.2", "cors": "^2.8.5", "helmet": "^7.1.0", "dotenv": "^16.3.1"},
    "fastify": {"fastify": "^4.24.3", "@fastify/cors": "^8.4.1", "dotenv": "^16.3.1"},
    "react": {
        "react": "^18.2.0",
        "react-dom": "^18.2.0",
        "react-router-dom": "^6.20.1",
        "react-scripts": "5.0.1",
    },
    "vue": {"vue": "^3.3.8", "vue-router": "^4.2.5"},
}

_DATABASE_PACKAGES: dict[str, dict[str, str]] = {
    "mongo": {"mongoose": "^8.0.3"},
    "postgres": {"pg": "^8.11.3"},
    "mysql": {"mysql2": "^3.6.5"},
}

_DEV_PACKAGES: dict[str, str] = {
    "nodemon": "^3.0.2",
    "jest": "^29.7.0",
    "supertest": "^6.3.3",
}

_PROMPT = textwrap.dedent("""\
    Create the initial setup for this project.

    Project:
    {project}

    Task: {task}
    Suggested folders: {folders}
""")


def build_package_json(refined: RefinedProject, project_slug: str) -> str:
    """Render ``package.json`` for *refined* from the technology selection."""
    tech = refined.technologies
    dependencies: dict[str, str] = {}

    for keyword, packages in _RUNTIME_PACKAGES.items():
        if tech.mentions("backend", keyword) or tech.mentions("frontend", keyword):
            dependencies.update(packages)
    for keyword, packages in _DATABASE_PACKAGES.items():
        if tech.mentions("database", keyword):
            dependencies.update(packages)
    has_server = "express" in dependencies or "fastify" in dependencies
    if not has_server and (not tech.backend or tech.mentions("backend", "node")):
        dependencies.update(_RUNTIME_PACKAGES["express"])
    for name in refined.dependencies:
        dependencies.setdefault(name, "latest")

    scripts = {
        "start": "node server.js",
        "dev": "nodemon server.js",
        "test": "jest",
    }
    if tech.mentions("frontend", "react"):
        scripts["client"] = "react-scripts start"
        scripts["build"] = "react-scripts build"

    package = {
        "name": project_slug,
        "version": "1.0.0",
        "description": refined.description or refined.architecture,
        "main": "server.js",
        "scripts": scripts,
        "dependencies": dict(sorted(dependencies.items())),
        "devDependencies": dict(_DEV_PACKAGES),
        "license": "MIT",
    }
    return json.dumps(package, indent=2) + "\n"


class SetupAgent(CodeAgent):
    """Creates the folder structure and baseline configuration."""

    tag = AgentTag.SETUP
    label = "Setup"

    system_prompt = textwrap.dedent("""\
        You are a senior developer bootstrapping a new project. You produce the
        initial folder structure and configuration files: package manifest,
        environment template, ignore rules and a README. Keep files minimal and
        runnable.
    """)

    default_instructions = (
        "Run 'npm install' to install dependencies",
        "Copy .env.example to .env and fill in the values",
    )

    def build_prompt(self, item: WorkItem, context: ProjectView) -> str:
        refined = context.refined_project
        folders = ", ".join(refined.structure.folders) or "your choice"
        return _PROMPT.format(
            project=describe_project(refined), task=item.description, folders=folders
        )

    def default_files(self, context: ProjectView) -> list[Artifact]:
        values = self.context_for(None, context)
        return [
            Artifact(
                path="package.json",
                content=build_package_json(context.refined_project, values["project_slug"]),
                type="config",
            ),
            self.renderer.artifact("setup/gitignore.j2", ".gitignore", "config", values),
            self.renderer.artifact("setup/README.md.j2", "README.md", "documentation", values),
            self.renderer.artifact("setup/env.example.j2", ".env.example", "config", values),
        ]

    def fallback_files(self, item: WorkItem, context: ProjectView) -> list[Artifact]:
        return self.default_files(context)

    def merge(
        self,
        files: list[Artifact],
        item: WorkItem,
        context: ProjectView,
    ) -> list[Artifact]:
        return merge_missing(files, self.default_files(context))
