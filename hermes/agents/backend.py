"""Backend agent: server, database config, routes and shared modules.

The first backend (or shared) module also receives the base server files for
the selected framework, so later modules only add routes on top of them.
"""

from __future__ import annotations

import textwrap

from hermes.agents.base import CodeAgent, describe_project
from hermes.models import AgentTag, Artifact, ProjectView, RefinedProject, WorkItem
from hermes.renderer import slugify

BACKEND_TYPES = frozenset({"server", "database", "middleware", "route", "model", "controller"})

_PROMPT = textwrap.dedent("""\
    Implement the backend module "{name}".

    Module description: {description}

    Project:
    {project}

    Files already generated:
    {existing}

    Produce routes, models or services for this module only. Reuse the
    existing server entry point; do not recreate it.
""")

# backend keyword -> server template
_SERVER_TEMPLATES: tuple[tuple[str, str], ...] = (
    ("fastify", "backend/fastify_server.js.j2"),
    ("express", "backend/express_server.js.j2"),
)

# database keyword -> database config template
_DATABASE_TEMPLATES: tuple[tuple[str, str], ...] = (
    ("mongo", "backend/mongo_database.js.j2"),
    ("postgres", "backend/postgres_database.js.j2"),
    ("mysql", "backend/mysql_database.js.j2"),
)


def server_template(refined: RefinedProject) -> str:
    """Server entry point template for the project's backend selection.

    Express is the default for Node projects that name no framework; a
    backend list naming neither Node nor a known framework gets plain Node.
    """
    tech = refined.technologies
    for keyword, template in _SERVER_TEMPLATES:
        if tech.mentions("backend", keyword):
            return template
    if not tech.backend or tech.mentions("backend", "node"):
        return "backend/express_server.js.j2"
    return "backend/node_server.js.j2"


def database_template(refined: RefinedProject) -> str | None:
    for keyword, template in _DATABASE_TEMPLATES:
        if refined.technologies.mentions("database", keyword):
            return template
    return None


def is_first_backend_module(context: ProjectView) -> bool:
    """``True`` while no backend artifact has been produced yet."""
    return not any(
        artifact.type in BACKEND_TYPES or artifact.path == "server.js"
        for artifact in context.files
    )


class BackendAgent(CodeAgent):
    """Generates backend code; also serves ``shared`` work items."""

    tag = AgentTag.BACKEND
    label = "Backend"

    system_prompt = textwrap.dedent("""\
        You are a senior backend developer. You write small, working server
        modules: routes with input validation, consistent JSON responses and
        centralised error handling. Match the project's chosen framework and
        database.
    """)

    default_instructions = ("Start the API with 'npm run dev'",)

    def build_prompt(self, item: WorkItem, context: ProjectView) -> str:
        existing = "\n".join(f"- {path}" for path in context.file_paths) or "- (none)"
        return _PROMPT.format(
            name=item.name,
            description=item.description,
            project=describe_project(context.refined_project),
            existing=existing,
        )

    def base_files(self, context: ProjectView) -> list[Artifact]:
        refined = context.refined_project
        values = self.context_for(None, context)
        files = [self.renderer.artifact(server_template(refined), "server.js", "server", values)]
        database = database_template(refined)
        if database:
            files.append(
                self.renderer.artifact(database, "config/database.js", "database", values)
            )
        files.append(
            self.renderer.artifact(
                "backend/auth_middleware.js.j2", "middleware/auth.js", "middleware", values
            )
        )
        return files

    def fallback_files(self, item: WorkItem, context: ProjectView) -> list[Artifact]:
        route = slugify(item.name) or "items"
        return [
            self.renderer.artifact(
                "backend/route.js.j2",
                f"routes/{route}.js",
                "route",
                self.context_for(item, context),
            )
        ]

    def merge(
        self,
        files: list[Artifact],
        item: WorkItem,
        context: ProjectView,
    ) -> list[Artifact]:
        if not is_first_backend_module(context):
            return files
        produced = {artifact.path for artifact in files}
        base = [f for f in self.base_files(context) if f.path not in produced]
        return base + files
