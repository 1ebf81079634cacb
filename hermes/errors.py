"""Exception hierarchy for Hermes.

Network and decode failures are absorbed as low as possible: the completion
client retries transport errors, the decoder repairs malformed payloads, and
stage agents fall back to deterministic output. The pipeline therefore only
ever sees a successful result or a :class:`StageFailed` signal.
"""

from __future__ import annotations

from typing import Any


class HermesError(Exception):
    """Base class for every error raised by Hermes."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(HermesError):
    """Raised when the credential or defaults are missing. Never retried."""


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class TransportError(HermesError):
    """Raised when the completion endpoint could not produce a response.

    Attributes:
        status_code: HTTP status of the last attempt, ``None`` for timeouts
            and connection failures.
        attempts: How many requests were made before giving up.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        attempts: int = 1,
    ) -> None:
        self.status_code = status_code
        self.attempts = attempts
        detail = f"status={status_code}" if status_code is not None else "no status"
        super().__init__(f"{message} ({detail}, attempts={attempts})")


class RateLimited(TransportError):
    """HTTP 429 from the completion endpoint."""


class ServerError(TransportError):
    """HTTP 5xx from the completion endpoint."""


# ---------------------------------------------------------------------------
# Payload decoding
# ---------------------------------------------------------------------------


class MalformedPayload(HermesError):
    """Raised when a model response does not contain a usable JSON object."""

    def __init__(self, message: str, raw: str = "") -> None:
        self.raw = raw
        super().__init__(message)


class SchemaInvalid(MalformedPayload):
    """The response parsed as JSON but failed schema validation."""

    def __init__(self, message: str, raw: str = "", errors: list[Any] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message, raw=raw)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class StageFailed(HermesError):
    """A stage agent could not complete its work item.

    ``degraded_files`` holds deterministic output the operator may choose to
    keep when continuing past the failure.
    """

    def __init__(
        self,
        item_name: str,
        reason: str,
        degraded_files: list[Any] | None = None,
    ) -> None:
        self.item_name = item_name
        self.reason = reason
        self.degraded_files = list(degraded_files or [])
        super().__init__(f"Step '{item_name}' failed: {reason}")


class PipelineError(HermesError):
    """Raised on an illegal stage transition."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f"Stage {stage}: {message}")
