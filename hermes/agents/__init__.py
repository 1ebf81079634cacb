"""Hermes stage agents.

Key classes:
    IdeaAgent      - Clarifying questions until the scope is complete
    RefinerAgent   - Scope -> RefinedProject, with deterministic fallback
    SetupAgent     - Package manifest, ignore rules, README, env template
    BackendAgent   - Server, database config and routes (also ``shared`` items)
    UIAgent        - Frontend entry points and components
    AssemblerAgent - Integration files, tests, docs and build config
"""

from __future__ import annotations

from hermes.agents.assembler import AssemblerAgent
from hermes.agents.backend import BackendAgent
from hermes.agents.base import Agent, CodeAgent, StageAgent, template_context
from hermes.agents.idea import IdeaAgent, IdeaTurn
from hermes.agents.refiner import RefinerAgent
from hermes.agents.setup import SetupAgent
from hermes.agents.ui import UIAgent
from hermes.llm_client import CompletionClient
from hermes.models import AgentTag
from hermes.renderer import TemplateRenderer


def build_registry(
    client: CompletionClient,
    renderer: TemplateRenderer | None = None,
    model: str | None = None,
) -> dict[AgentTag, StageAgent]:
    """Map every work-item tag to the agent instance that serves it.

    ``shared`` items go to the backend agent.
    """
    renderer = renderer or TemplateRenderer()
    backend = BackendAgent(client, renderer, model)
    return {
        AgentTag.SETUP: SetupAgent(client, renderer, model),
        AgentTag.SHARED: backend,
        AgentTag.BACKEND: backend,
        AgentTag.UI: UIAgent(client, renderer, model),
        AgentTag.ASSEMBLER: AssemblerAgent(client, renderer, model),
    }


__all__ = [
    "Agent",
    "StageAgent",
    "CodeAgent",
    "template_context",
    "IdeaAgent",
    "IdeaTurn",
    "RefinerAgent",
    "SetupAgent",
    "BackendAgent",
    "UIAgent",
    "AssemblerAgent",
    "build_registry",
]
