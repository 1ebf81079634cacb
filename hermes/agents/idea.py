"""Idea agent: short question-and-answer loop that captures the project scope.

The agent only produces the next turn; the pipeline owns the conversation,
enforces the turn budget and asks the operator for replies.
"""

from __future__ import annotations

import textwrap
from collections.abc import Sequence
from dataclasses import dataclass

from hermes.agents.base import Agent
from hermes.models import ConversationTurn

SCOPE_MARKER = "SCOPE_COMPLETE:"
EXIT_KEYWORDS = frozenset({"exit", "quit", "sair"})

IDEA_PROMPT = textwrap.dedent(f"""\
    You are the Hermes idea agent. You capture and structure software ideas.

    The first user message is the initial idea. Then:
    1. Ask one clarifying question at a time, in a friendly tone.
    2. Cover functional and non-functional requirements, business rules, the
       target audience and the context of use.
    3. After each answer decide whether you need more information.

    When you have enough information, reply with
    "{SCOPE_MARKER} <detailed project summary>" and nothing before the marker.
""")


@dataclass
class IdeaTurn:
    """Either a follow-up question or the completed scope."""

    question: str | None = None
    scope: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.scope is not None


def parse_reply(text: str) -> IdeaTurn:
    """Split a model reply into a question or a completed scope.

    The scope is the text after the marker; a marker with nothing after it
    keeps whatever came before it.
    """
    if SCOPE_MARKER not in text:
        return IdeaTurn(question=text.strip())
    before, _, after = text.partition(SCOPE_MARKER)
    return IdeaTurn(scope=after.strip() or before.strip())


def is_exit(reply: str) -> bool:
    return reply.strip().lower() in EXIT_KEYWORDS


class IdeaAgent(Agent):
    """Asks clarifying questions until the model declares the scope complete."""

    label = "Idea"

    def opening(self, idea: str) -> list[ConversationTurn]:
        """Conversation seeded with the system prompt and the raw idea."""
        return [ConversationTurn.system(IDEA_PROMPT), ConversationTurn.user(idea.strip())]

    async def next_turn(self, conversation: Sequence[ConversationTurn]) -> IdeaTurn:
        """Request the next question, or the scope if the model has enough."""
        reply = await self.client.complete(conversation, model=self.model)
        return parse_reply(reply)
