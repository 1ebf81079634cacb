"""Unit tests for CompletionClient (hermes.llm_client).

Tests cover:
- Payload construction and history trimming
- Successful completion
- Retry on 429 / 5xx / timeout / connection error, with backoff
- Immediate failure on other 4xx and on malformed bodies
- Missing credential fails before any request
- send_message, health_check
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from hermes.config import ApiConfig, Config
from hermes.errors import ConfigurationError, RateLimited, ServerError, TransportError
from hermes.llm_client import CompletionClient
from hermes.models import ConversationTurn


def _ok(text: str = "hello") -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": text}}]})


def _mock_http(*outcomes):
    """An ``AsyncClient`` stand-in whose ``post`` yields *outcomes* in order."""
    mock_client = AsyncMock()
    mock_client.post = AsyncMock(side_effect=list(outcomes))
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


def _turns(count: int = 1) -> list[ConversationTurn]:
    return [ConversationTurn.user(f"message {i}") for i in range(count)]


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------


class TestPayload:
    @pytest.mark.unit
    def test_payload_fields(self, config: Config):
        client = CompletionClient(config)
        payload = client._payload(_turns(1), None)
        assert payload["model"] == "coder"
        assert payload["temperature"] == 0.1
        assert payload["max_tokens"] == 1500
        assert payload["messages"] == [{"role": "user", "content": "message 0"}]

    @pytest.mark.unit
    def test_model_override(self, config: Config):
        payload = CompletionClient(config)._payload(_turns(1), "other")
        assert payload["model"] == "other"

    @pytest.mark.unit
    def test_history_trimmed_to_most_recent(self, config: Config):
        turns = _turns(10)
        payload = CompletionClient(config)._payload(turns, None)
        contents = [m["content"] for m in payload["messages"]]
        assert contents == [f"message {i}" for i in range(4, 10)]
        assert len(turns) == 10

    @pytest.mark.unit
    def test_headers_carry_bearer_token(self, config: Config):
        headers = CompletionClient(config)._headers()
        assert headers["Authorization"] == "Bearer test-token-1234"

    @pytest.mark.unit
    def test_backoff_doubles(self):
        client = CompletionClient(Config(token="x"))
        assert [client._backoff(a) for a in range(3)] == [1.0, 2.0, 4.0]


# ---------------------------------------------------------------------------
# complete()
# ---------------------------------------------------------------------------


class TestComplete:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success(self, config: Config):
        mock_client = _mock_http(_ok("the answer"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            text = await CompletionClient(config).complete(_turns())

        assert text == "the answer"
        assert mock_client.post.await_count == 1
        assert mock_client.post.call_args[0][0] == "/chat/completions"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retries_429_then_500_then_succeeds(self):
        config = Config(token="t", api=ApiConfig(backoff_base=1.0))
        sleep = AsyncMock()
        mock_client = _mock_http(
            httpx.Response(429, text="slow down"),
            httpx.Response(500, text="boom"),
            _ok("finally"),
        )
        with patch("httpx.AsyncClient", return_value=mock_client):
            text = await CompletionClient(config, sleep=sleep).complete(_turns())

        assert text == "finally"
        assert mock_client.post.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_persistent_429_raises_rate_limited(self, config: Config):
        mock_client = _mock_http(*[httpx.Response(429, text="slow") for _ in range(3)])
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(RateLimited) as exc_info:
                await CompletionClient(config, sleep=AsyncMock()).complete(_turns())

        assert exc_info.value.status_code == 429
        assert exc_info.value.attempts == 3
        assert mock_client.post.await_count == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_persistent_5xx_raises_server_error(self, config: Config):
        mock_client = _mock_http(*[httpx.Response(503, text="down") for _ in range(3)])
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(ServerError):
                await CompletionClient(config, sleep=AsyncMock()).complete(_turns())

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, config: Config):
        sleep = AsyncMock()
        mock_client = _mock_http(httpx.Response(401, text="bad token"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(TransportError) as exc_info:
                await CompletionClient(config, sleep=sleep).complete(_turns())

        assert exc_info.value.status_code == 401
        assert not isinstance(exc_info.value, (RateLimited, ServerError))
        assert mock_client.post.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout_retried(self, config: Config):
        mock_client = _mock_http(httpx.TimeoutException("timed out"), _ok("ok"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            text = await CompletionClient(config, sleep=AsyncMock()).complete(_turns())
        assert text == "ok"
        assert mock_client.post.await_count == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_connection_errors_exhaust_retries(self, config: Config):
        mock_client = _mock_http(*[httpx.ConnectError("refused") for _ in range(3)])
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(TransportError) as exc_info:
                await CompletionClient(config, sleep=AsyncMock()).complete(_turns())
        assert exc_info.value.status_code is None
        assert exc_info.value.attempts == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_malformed_body_raises(self, config: Config):
        mock_client = _mock_http(httpx.Response(200, json={"unexpected": True}))
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(TransportError, match="Unexpected response shape"):
                await CompletionClient(config).complete(_turns())
        assert mock_client.post.await_count == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_token_makes_no_request(self):
        with patch("httpx.AsyncClient") as client_cls:
            with pytest.raises(ConfigurationError):
                await CompletionClient(Config(token="")).complete(_turns())
        client_cls.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_conversation_rejected(self, config: Config):
        with pytest.raises(ValueError):
            await CompletionClient(config).complete([])


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_send_message_wraps_single_turn(self, config: Config):
        mock_client = _mock_http(_ok("pong"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            assert await CompletionClient(config).send_message("ping") == "pong"
        payload = mock_client.post.call_args.kwargs["json"]
        assert payload["messages"] == [{"role": "user", "content": "ping"}]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_health_check_false_without_token(self):
        assert await CompletionClient(Config()).health_check() is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_health_check_true_when_endpoint_answers(self, config: Config):
        mock_client = _mock_http(_ok("pong"))
        with patch("httpx.AsyncClient", return_value=mock_client):
            assert await CompletionClient(config).health_check() is True


class TestNoAttempts:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_zero_attempt_budget_raises_transport_error(self, config: Config):
        # bypasses validation, which normally keeps max_retries >= 0
        api = config.api.model_copy(update={"max_retries": -1})
        client = CompletionClient(config.model_copy(update={"api": api}))
        mock_client = _mock_http()
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(TransportError) as exc_info:
                await client.complete([ConversationTurn.user("hi")])
        assert exc_info.value.attempts == 0
        mock_client.post.assert_not_called()
