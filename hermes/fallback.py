"""Deterministic fallback project construction.

When the refine stage cannot obtain a valid payload from the model, Hermes
still needs a schema-valid :class:`~hermes.models.RefinedProject` so the plan
builder always receives non-empty input. Classification is driven by ordered
rule tables of case-insensitive keywords; the first matching rule wins.

No I/O happens here.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from hermes.models import (
    ConversationTurn,
    Module,
    ModuleKind,
    Priority,
    ProjectStructure,
    RefinedProject,
    Role,
    Technologies,
)


class AppCategory(str, Enum):
    """Broad application category inferred from free text."""
    FULLSTACK = "fullstack"
    MOBILE = "mobile"
    API = "api"
    WEB = "web"


@dataclass(frozen=True)
class CategoryRule:
    category: AppCategory
    keywords: tuple[str, ...]


@dataclass(frozen=True)
class TechRule:
    keywords: tuple[str, ...]
    value: tuple[str, ...]


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(AppCategory.FULLSTACK, ("full-stack", "fullstack", "full stack")),
    CategoryRule(
        AppCategory.MOBILE,
        ("mobile", "android", "ios", "iphone", "smartphone", "react native", "flutter"),
    ),
    CategoryRule(
        AppCategory.API,
        ("api", "apis", "backend", "back-end", "server", "microservice", "microservices",
         "endpoint", "endpoints", "graphql"),
    ),
    CategoryRule(
        AppCategory.WEB,
        ("web", "website", "webapp", "site", "page", "pages", "browser", "dashboard",
         "landing", "spa"),
    ),
)

DEFAULT_CATEGORY = AppCategory.WEB

FRONTEND_RULES: tuple[TechRule, ...] = (
    TechRule(("react native",), ("React Native",)),
    TechRule(("flutter",), ("Flutter",)),
    TechRule(("next.js", "nextjs"), ("React", "Next.js")),
    TechRule(("react",), ("React",)),
    TechRule(("vue", "vue.js", "vuejs", "nuxt"), ("Vue.js",)),
    TechRule(("angular",), ("Angular",)),
    TechRule(("svelte",), ("Svelte",)),
)

BACKEND_RULES: tuple[TechRule, ...] = (
    TechRule(("fastify",), ("Node.js", "Fastify")),
    TechRule(("node", "node.js", "nodejs", "express"), ("Node.js", "Express")),
    TechRule(("fastapi",), ("Python", "FastAPI")),
    TechRule(("django",), ("Python", "Django")),
    TechRule(("flask",), ("Python", "Flask")),
)

DATABASE_RULES: tuple[TechRule, ...] = (
    TechRule(("postgres", "postgresql"), ("PostgreSQL",)),
    TechRule(("mysql", "mariadb"), ("MySQL",)),
    TechRule(("sqlite",), ("SQLite",)),
    TechRule(("mongo", "mongodb"), ("MongoDB",)),
)

DEFAULT_DATABASE = "MongoDB"

_CATEGORY_DEFAULTS: dict[AppCategory, dict[str, object]] = {
    AppCategory.FULLSTACK: {
        "architecture": "Full-stack Web Application",
        "frontend": ["React"],
        "backend": ["Node.js", "Express"],
        "client_module": ("Web Client", "Pages and components of the web client"),
    },
    AppCategory.MOBILE: {
        "architecture": "Mobile Application",
        "frontend": ["React Native"],
        "backend": ["Node.js", "Express"],
        "client_module": ("Mobile Screens", "Screens and navigation of the mobile app"),
    },
    AppCategory.API: {
        "architecture": "REST API",
        "frontend": [],
        "backend": ["Node.js", "Express"],
        "client_module": ("API Explorer", "Minimal page for exercising the API endpoints"),
    },
    AppCategory.WEB: {
        "architecture": "Single Page Application (SPA)",
        "frontend": ["React"],
        "backend": ["Node.js", "Express"],
        "client_module": ("Main Interface", "Main application component and pages"),
    },
}


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def _mentions(text: str, keywords: Sequence[str]) -> bool:
    """Whole-word, case-insensitive keyword presence (``api`` does not match ``rapid``)."""
    return any(
        re.search(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])", text, re.IGNORECASE)
        for keyword in keywords
    )


def classify(text: str) -> AppCategory:
    """Return the first category whose keywords appear in *text*."""
    for rule in CATEGORY_RULES:
        if _mentions(text, rule.keywords):
            return rule.category
    return DEFAULT_CATEGORY


def match_technology(text: str, rules: Sequence[TechRule]) -> list[str]:
    """Return the value of the first rule matching *text*, or ``[]``."""
    for rule in rules:
        if _mentions(text, rule.keywords):
            return list(rule.value)
    return []


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def construct_default(free_text: str) -> RefinedProject:
    """Build a minimal, schema-valid project description from free text.

    The result always has exactly three modules, all ``high`` priority: one
    client-facing frontend module, one backend module and one shared setup
    module.
    """
    category = classify(free_text)
    defaults = _CATEGORY_DEFAULTS[category]

    frontend = match_technology(free_text, FRONTEND_RULES) or list(defaults["frontend"])
    backend = match_technology(free_text, BACKEND_RULES) or list(defaults["backend"])
    database = (match_technology(free_text, DATABASE_RULES) or [DEFAULT_DATABASE])[0]
    client_name, client_description = defaults["client_module"]

    dependencies: list[str]
    if any("vue" in tech.lower() for tech in frontend):
        dependencies = ["vue"]
    elif any("react native" in tech.lower() for tech in frontend):
        dependencies = ["react", "react-native"]
    elif frontend:
        dependencies = ["react", "react-dom"]
    else:
        dependencies = ["express"]

    return RefinedProject(
        name="",
        description=free_text.strip()[:280],
        architecture=str(defaults["architecture"]),
        technologies=Technologies(
            frontend=frontend,
            backend=backend,
            database=database,
            other=["Jest", "ESLint"],
        ),
        modules=[
            Module(
                name=client_name,
                description=client_description,
                kind=ModuleKind.FRONTEND,
                priority=Priority.HIGH,
            ),
            Module(
                name="API Backend",
                description="Application services and routes",
                kind=ModuleKind.BACKEND,
                priority=Priority.HIGH,
            ),
            Module(
                name="Configuration and Setup",
                description="Configuration files and application bootstrap",
                kind=ModuleKind.SHARED,
                priority=Priority.HIGH,
            ),
        ],
        structure=ProjectStructure(
            folders=["src", "public", "api", "components", "utils"],
            main_files=["index.js", "App.js", "server.js", "package.json"],
        ),
        dependencies=dependencies,
    )


def synthesize_scope(turns: Sequence[ConversationTurn]) -> str:
    """Summarise the user's side of an idea conversation as a project scope.

    Used when the idea stage reaches its turn budget without the model ever
    declaring the scope complete.
    """
    answers = [t.text.strip() for t in turns if t.role is Role.USER and t.text.strip()]
    if not answers:
        return "A web application."

    category = classify(" ".join(answers))
    label = str(_CATEGORY_DEFAULTS[category]["architecture"])
    lines = [f"{label}: {answers[0]}"]
    if len(answers) > 1:
        lines.append("")
        lines.append("Additional details:")
        lines.extend(f"- {answer}" for answer in answers[1:])
    return "\n".join(lines)
