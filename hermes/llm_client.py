"""Async client for an OpenAI-compatible chat completion endpoint.

Wraps ``POST {base_url}/chat/completions`` with a hard per-request timeout,
bounded retries with exponential backoff, and conversation trimming. Only the
status-code class of a failed response is inspected:

* timeout, connection failure, 429 and 5xx are retried;
* any other 4xx fails immediately;
* a missing credential fails before any request is made.

Typical usage::

    client = CompletionClient(Config.load())
    text = await client.complete([ConversationTurn.user("Describe a todo app")])
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx

from hermes.config import Config
from hermes.errors import ConfigurationError, RateLimited, ServerError, TransportError
from hermes.models import ConversationTurn, Role
from hermes.utils import console, print_error, print_warning

SleepFn = Callable[[float], Awaitable[None]]


class CompletionClient:
    """Async client for the completion endpoint.

    The client uses ``httpx.AsyncClient`` for non-blocking HTTP. Retries are
    local to :meth:`complete` and invisible to callers except as latency.
    """

    def __init__(self, config: Config, sleep: SleepFn | None = None) -> None:
        self.config = config
        self.base_url = config.api.base_url.rstrip("/")
        self.timeout = config.api.timeout
        self._sleep = sleep or asyncio.sleep

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.token}",
            "Content-Type": "application/json",
        }

    def _payload(self, turns: Sequence[ConversationTurn], model: str | None) -> dict[str, Any]:
        recent = list(turns)[-self.config.api.max_history:]
        return {
            "model": model or self.config.default_model,
            "messages": [turn.to_message() for turn in recent],
            "temperature": self.config.api.temperature,
            "max_tokens": self.config.api.max_tokens,
        }

    def _backoff(self, attempt: int) -> float:
        """Delay before the retry following *attempt* (0-based): 1, 2, 4, ..."""
        return self.config.api.backoff_base * (2 ** attempt)

    @staticmethod
    def _extract_text(data: Any) -> str:
        """Pull ``choices[0].message.content`` out of a completion response.

        Raises:
            KeyError, IndexError, TypeError: when the body has another shape.
        """
        content = data["choices"][0]["message"]["content"]
        if not isinstance(content, str):
            raise TypeError("message content is not a string")
        return content

    @staticmethod
    def _classify(response: httpx.Response, attempt: int) -> TransportError:
        """Map a non-2xx response onto the transport error taxonomy."""
        status = response.status_code
        body = response.text[:300]
        if status == 429:
            return RateLimited(f"Rate limited: {body}", status_code=status, attempts=attempt)
        if status >= 500:
            return ServerError(f"Server error: {body}", status_code=status, attempts=attempt)
        return TransportError(f"Request rejected: {body}", status_code=status, attempts=attempt)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def complete(
        self,
        turns: Sequence[ConversationTurn],
        model: str | None = None,
    ) -> str:
        """Send a conversation and return the assistant's reply text.

        Args:
            turns: Non-empty conversation. Only the most recent
                ``api.max_history`` turns are sent; *turns* itself is left
                untouched.
            model: Model override; defaults to ``config.default_model``.

        Raises:
            ConfigurationError: No API token is configured.
            RateLimited: 429 persisted through every attempt.
            ServerError: 5xx persisted through every attempt.
            TransportError: Timeout/connection failure persisted, another
                4xx was returned, or the response body had no content.
        """
        if not turns:
            raise ValueError("Cannot request a completion for an empty conversation")
        if not self.config.is_configured:
            raise ConfigurationError(
                "API token is not configured. Run 'hermes config --token <TOKEN>' first."
            )

        payload = self._payload(turns, model)
        max_attempts = self.config.api.max_retries + 1
        last_error: TransportError | None = None

        async with self._client() as client:
            for attempt in range(max_attempts):
                number = attempt + 1
                try:
                    response = await client.post(
                        "/chat/completions", json=payload, headers=self._headers()
                    )
                except httpx.TimeoutException:
                    last_error = TransportError(
                        f"Request timed out after {self.timeout}s", attempts=number
                    )
                    print_warning(f"  Timeout on attempt {number}/{max_attempts}")
                except httpx.TransportError as exc:
                    last_error = TransportError(
                        f"Cannot reach {self.base_url}: {exc}", attempts=number
                    )
                    print_warning(f"  Connection error on attempt {number}/{max_attempts}")
                else:
                    if response.is_success:
                        try:
                            return self._extract_text(response.json())
                        except (ValueError, KeyError, IndexError, TypeError) as exc:
                            raise TransportError(
                                f"Unexpected response shape: {exc}",
                                status_code=response.status_code,
                                attempts=number,
                            ) from exc

                    last_error = self._classify(response, number)
                    if not isinstance(last_error, (RateLimited, ServerError)):
                        print_error(f"  Request rejected with HTTP {response.status_code}")
                        raise last_error
                    print_warning(
                        f"  HTTP {response.status_code} on attempt {number}/{max_attempts}"
                    )

                if number < max_attempts:
                    delay = self._backoff(attempt)
                    console.print(f"  [dim]Waiting {delay:g}s before retrying...[/dim]")
                    await self._sleep(delay)

        if last_error is None:
            raise TransportError("No request was attempted", attempts=0)
        print_error(
            f"  All {max_attempts} attempts failed (token {self.config.masked_token}): {last_error}"
        )
        raise last_error

    async def send_message(
        self,
        content: str,
        role: Role = Role.USER,
        model: str | None = None,
    ) -> str:
        """Single-turn convenience wrapper around :meth:`complete`."""
        return await self.complete([ConversationTurn(role=role, text=content)], model=model)

    async def health_check(self) -> bool:
        """Return ``True`` if the endpoint answers a trivial prompt."""
        try:
            await self.send_message("ping")
        except (TransportError, ConfigurationError):
            return False
        return True
