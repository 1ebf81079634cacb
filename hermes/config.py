"""Hermes configuration.

Centralised, typed configuration for the CLI. All settings use Pydantic v2
models so they can be validated at construction time and serialised to/from
JSON or environment variables without boiler-plate.

The core pipeline never reads this file itself: the CLI loads a ``Config``
once and hands it to the completion client and the project saver.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path.home() / ".hermes-config.json"
DEFAULT_RECENT_PROJECTS_PATH = Path.home() / ".hermes-recent-projects.json"


class ApiConfig(BaseModel):
    """Connection and retry settings for the completion endpoint."""

    base_url: str = Field(default="https://conductor.arcee.ai/v1")
    timeout: int = Field(default=30, ge=1, description="Per-request timeout in seconds")
    max_retries: int = Field(default=2, ge=0, description="Retries after the first attempt")
    backoff_base: float = Field(
        default=1.0, ge=0.0, description="First backoff delay in seconds; doubles per attempt"
    )
    max_history: int = Field(
        default=6, ge=1, description="Most recent conversation turns sent per request"
    )
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1500, ge=1)


class PipelineConfig(BaseModel):
    """Tuning knobs for the stage pipeline."""

    max_idea_turns: int = Field(
        default=3, ge=1, description="Question turns before the idea stage is closed"
    )


class Config(BaseModel):
    """Global Hermes configuration.

    Holds the API credential, the default model and the folder generated
    projects are saved under.
    """

    token: str = Field(default="")
    default_model: str = Field(default="coder")
    projects_path: Path = Field(default=Path("./hermes-projects"))
    recent_projects_path: Path = Field(default=DEFAULT_RECENT_PROJECTS_PATH)
    api: ApiConfig = Field(default_factory=ApiConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    # ------------------------------------------------------------------
    # Credential helpers
    # ------------------------------------------------------------------

    @property
    def is_configured(self) -> bool:
        """``True`` once an API token has been provided."""
        return bool(self.token.strip())

    @property
    def masked_token(self) -> str:
        """Short, non-reversible rendering of the token for display."""
        if not self.is_configured:
            return "(not configured)"
        return f"{self.token[:4]}***"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to ``~/.hermes-config.json``.

        Returns:
            The resolved path where the file was written.
        """
        target = Path(path or DEFAULT_CONFIG_PATH)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path or DEFAULT_CONFIG_PATH).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def exists(cls, path: Path | None = None) -> bool:
        """Return ``True`` if a configuration file is present."""
        return Path(path or DEFAULT_CONFIG_PATH).exists()

    @classmethod
    def from_env(cls, base: "Config | None" = None) -> "Config":
        """Build a ``Config`` from environment variables.

        Values from the environment override those of *base* (or the
        defaults when *base* is omitted).

        Recognised variables (all optional):
            HERMES_TOKEN, HERMES_MODEL, HERMES_PROJECTS_PATH,
            HERMES_BASE_URL, HERMES_TIMEOUT.
        """
        base = base or cls()

        api_kwargs: dict[str, Any] = base.api.model_dump()
        if os.environ.get("HERMES_BASE_URL"):
            api_kwargs["base_url"] = os.environ["HERMES_BASE_URL"]
        if os.environ.get("HERMES_TIMEOUT"):
            api_kwargs["timeout"] = int(os.environ["HERMES_TIMEOUT"])

        return cls(
            token=os.environ.get("HERMES_TOKEN", base.token),
            default_model=os.environ.get("HERMES_MODEL", base.default_model),
            projects_path=Path(os.environ.get("HERMES_PROJECTS_PATH", str(base.projects_path))),
            recent_projects_path=base.recent_projects_path,
            api=ApiConfig(**api_kwargs),
            pipeline=base.pipeline,
        )
