"""Tolerant decoding of model responses into validated structured payloads.

Model output carries no format contract: the JSON object we asked for may be
wrapped in markdown fences, surrounded by prose, or littered with control
characters. Decoding is an explicit pipeline of small, total steps::

    strip_fences -> extract_candidate -> sanitize -> parse -> validate

:class:`ResponseDecoder` adds the request side: it asks for a payload, and if
decoding or validation fails it issues exactly one corrective request before
giving up with :class:`~hermes.errors.MalformedPayload`. Callers are expected
to fall back to deterministic output at that point.
"""

from __future__ import annotations

import json
import re
import textwrap
from collections.abc import Sequence
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from hermes.errors import MalformedPayload, SchemaInvalid
from hermes.llm_client import CompletionClient
from hermes.models import ConversationTurn
from hermes.utils import print_warning

ModelT = TypeVar("ModelT", bound=BaseModel)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_FENCE_PATTERN = re.compile(r"(?m)^[ \t]*```[\w+-]*[ \t]*$")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")

REPAIR_INSTRUCTION = textwrap.dedent("""\
    Your previous answer could not be used. Return ONLY valid JSON matching
    the structure requested above: no markdown fences, no prose, no comments,
    and no text before or after the JSON object.
""")


# ---------------------------------------------------------------------------
# Pipeline steps
# ---------------------------------------------------------------------------

def strip_fences(text: str) -> str:
    """Remove markdown code-fence lines, with or without a language tag.

    Only fences standing on their own line are removed; backticks inside
    JSON string values sit on the same line as the surrounding JSON.
    """
    return _FENCE_PATTERN.sub("", text)


def extract_candidate(text: str) -> str:
    """Slice from the first ``{`` to the last ``}``.

    If either brace is missing, or they are out of order, the whole text is
    returned unchanged so the parser can report the failure.
    """
    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last != -1 and first < last:
        return text[first:last + 1]
    return text


def sanitize(text: str) -> str:
    """Drop ASCII/C1 control characters (0x00-0x1F, 0x7F-0x9F) and trim."""
    return _CONTROL_CHARS.sub("", text).strip()


def parse(candidate: str) -> dict[str, Any]:
    """Strictly parse *candidate* as a JSON object.

    Raises:
        MalformedPayload: invalid JSON, or JSON whose top level is not an object.
    """
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise MalformedPayload(f"Response is not valid JSON: {exc}", raw=candidate) from exc
    if not isinstance(data, dict):
        raise MalformedPayload(
            f"Expected a JSON object, got {type(data).__name__}", raw=candidate
        )
    return data


def decode(raw_text: str) -> dict[str, Any]:
    """Run the full extraction pipeline on a raw model response.

    Example::

        decode('Here you go:\\n```json\\n{"a": 1}\\n```\\nThanks')  # {"a": 1}
    """
    return parse(sanitize(extract_candidate(strip_fences(raw_text))))


def validate(payload: dict[str, Any], schema: type[ModelT], raw: str = "") -> ModelT:
    """Validate a decoded payload against *schema*.

    A syntactically valid but incomplete payload is rejected as a whole.

    Raises:
        SchemaInvalid: when Pydantic validation fails.
    """
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise SchemaInvalid(
            f"Payload does not match {schema.__name__}: {exc.error_count()} error(s)",
            raw=raw,
            errors=exc.errors(include_url=False),
        ) from exc


# ---------------------------------------------------------------------------
# Request-side decoder
# ---------------------------------------------------------------------------

class ResponseDecoder:
    """Requests structured payloads and repairs malformed answers once."""

    def __init__(self, client: CompletionClient) -> None:
        self.client = client

    @staticmethod
    def decode_as(raw_text: str, schema: type[ModelT]) -> ModelT:
        """Decode *raw_text* and validate it against *schema* in one step."""
        return validate(decode(raw_text), schema, raw=raw_text)

    async def request_structured(
        self,
        turns: Sequence[ConversationTurn],
        schema: type[ModelT],
        model: str | None = None,
    ) -> ModelT:
        """Ask for a payload matching *schema*, repairing once on failure.

        Raises:
            MalformedPayload: both the first answer and the corrective
                answer failed to decode or validate.
            TransportError, ConfigurationError: propagated from the client.
        """
        raw = await self.client.complete(turns, model=model)
        try:
            return self.decode_as(raw, schema)
        except MalformedPayload as exc:
            print_warning(f"  Could not decode response ({exc}); requesting a corrected answer...")

        repair_turns = [
            *turns,
            ConversationTurn.assistant(raw),
            ConversationTurn.user(REPAIR_INSTRUCTION),
        ]
        retry_raw = await self.client.complete(repair_turns, model=model)
        return self.decode_as(retry_raw, schema)
