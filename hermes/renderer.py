"""Jinja2 rendering of default file bodies.

Stage agents fall back to (or top up with) deterministic files when the model
does not deliver them. Those bodies live as ``.j2`` templates under
``hermes/templates/`` and are rendered in memory into
:class:`~hermes.models.Artifact` objects; nothing is written to disk here.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from hermes.models import Artifact

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


class TemplateRenderer:
    """Renders the agents' Jinja2 templates.

    Templates are addressed by their path relative to the template directory
    (e.g. ``"backend/express_server.js.j2"``) and rendered with a context
    dictionary built from the refined project and the current work item.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = slugify
        self.env.filters["pascal_case"] = pascal_case
        self.env.filters["camel_case"] = camel_case

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context."""
        return self.env.get_template(template_path).render(**context)

    def artifact(
        self,
        template_path: str,
        output_path: str,
        file_type: str,
        context: dict[str, Any],
    ) -> Artifact:
        """Render *template_path* into an artifact at *output_path*."""
        return Artifact(
            path=output_path,
            content=self.render(template_path, context),
            type=file_type,
        )


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def slugify(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def pascal_case(value: str) -> str:
    """Convert ``some-thing``, ``some_thing`` or ``some thing`` to ``SomeThing``."""
    parts = re.split(r"[^A-Za-z0-9]+", value)
    return "".join(word[:1].upper() + word[1:] for word in parts if word)


def camel_case(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = pascal_case(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""
