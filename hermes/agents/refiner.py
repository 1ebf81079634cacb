"""Refiner agent: turns the captured scope into a technical project description."""

from __future__ import annotations

import textwrap

from hermes.agents.base import Agent
from hermes.errors import MalformedPayload, TransportError
from hermes.fallback import construct_default
from hermes.models import ConversationTurn, RefinedProject
from hermes.utils import create_progress, print_warning

REFINER_PROMPT = textwrap.dedent("""\
    You are the Hermes refiner agent. Take the project scope and refine it
    technically: define the architecture, choose the technologies, split the
    project into modules, propose a folder structure and list dependencies.

    Return ONLY valid JSON, without markdown or explanations, in this format:
    {
      "name": "short project name",
      "description": "one-paragraph summary",
      "architecture": "architecture type (SPA, REST API, Full-stack, ...)",
      "technologies": {
        "frontend": ["technology"],
        "backend": ["technology"],
        "database": "database type",
        "other": ["tool"]
      },
      "modules": [
        {
          "name": "Module name",
          "description": "Concise description",
          "kind": "frontend | backend | shared",
          "priority": "high | medium | low"
        }
      ],
      "structure": {
        "folders": ["folder"],
        "main_files": ["file.js"]
      },
      "dependencies": ["package"]
    }
""")


class RefinerAgent(Agent):
    """Requests a :class:`RefinedProject`, falling back to a deterministic one."""

    label = "Refiner"

    async def refine(self, scope: str) -> tuple[RefinedProject, bool]:
        """Refine *scope*.

        Returns:
            ``(project, degraded)`` where *degraded* is ``True`` when the
            project was built by :func:`~hermes.fallback.construct_default`.

        Raises:
            ConfigurationError: propagated from the client.
        """
        turns = [
            ConversationTurn.system(REFINER_PROMPT),
            ConversationTurn.user(f"Project scope:\n{scope}"),
        ]
        try:
            with create_progress() as progress:
                progress.add_task("Refining and structuring the project...", total=None)
                refined = await self.decoder.request_structured(
                    turns, RefinedProject, model=self.model
                )
        except (MalformedPayload, TransportError) as exc:
            print_warning(f"  Using a default project structure: {exc}")
            return construct_default(scope), True
        return refined, False
