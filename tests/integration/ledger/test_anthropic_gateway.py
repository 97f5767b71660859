"""
Integration tests for AnthropicCompletionGateway against a mocked API.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from core.domain.exceptions import CompletionGatewayError
from ledger.infrastructure.anthropic_gateway import (
    ANTHROPIC_MESSAGES_URL,
    EMPTY_RESPONSE_TEXT,
    AnthropicCompletionGateway,
)

MODEL = "claude-sonnet-4-20250514"


def make_response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = str(payload)
    return response


@pytest.fixture
def session():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def gateway(session):
    with patch("ledger.infrastructure.anthropic_gateway.requests.Session", return_value=session):
        yield AnthropicCompletionGateway(api_key="sk-test", max_tokens=2500, timeout=5.0)


@pytest.mark.integration
@pytest.mark.asyncio
class TestAnthropicCompletionGateway:
    """Integration tests for AnthropicCompletionGateway."""

    async def test_complete(self, gateway, session):
        """Test text blocks are joined and usage is mapped."""
        session.post.return_value = make_response(
            {
                "content": [
                    {"type": "text", "text": "Hello "},
                    {"type": "tool_use", "id": "x"},
                    {"type": "text", "text": "world"},
                ],
                "usage": {
                    "input_tokens": 10,
                    "output_tokens": 20,
                    "cache_read_input_tokens": 5,
                },
            }
        )

        result = await gateway.complete("Say hello", MODEL)

        assert result.text == "Hello world"
        assert result.model == MODEL
        assert result.usage == {"input": 10, "output": 20, "cache_creation": 0, "cache_read": 5}
        assert result.total_tokens == 35

        url = session.post.call_args.args[0]
        payload = session.post.call_args.kwargs["json"]
        assert url == ANTHROPIC_MESSAGES_URL
        assert payload["max_tokens"] == 2500
        assert payload["messages"] == [{"role": "user", "content": "Say hello"}]
        assert session.headers["x-api-key"] == "sk-test"
        assert session.headers["anthropic-version"] == "2023-06-01"

    async def test_empty_content(self, gateway, session):
        session.post.return_value = make_response({"content": [], "usage": {}})

        result = await gateway.complete("hi", MODEL)

        assert result.text == EMPTY_RESPONSE_TEXT
        assert result.total_tokens == 0

    async def test_upstream_error(self, gateway, session):
        """Test non-200 answers carry status and details."""
        session.post.return_value = make_response(
            {"type": "error", "error": {"type": "overloaded_error"}}, status_code=529
        )

        with pytest.raises(CompletionGatewayError) as exc_info:
            await gateway.complete("hi", MODEL)

        assert exc_info.value.status == 529
        assert exc_info.value.details["error"]["type"] == "overloaded_error"

    async def test_transport_error(self, gateway, session):
        session.post.side_effect = requests.exceptions.ConnectionError("reset")

        with pytest.raises(CompletionGatewayError):
            await gateway.complete("hi", MODEL)

    async def test_missing_key(self):
        gateway = AnthropicCompletionGateway(api_key="")

        with pytest.raises(CompletionGatewayError) as exc_info:
            await gateway.complete("hi", MODEL)

        assert "not configured" in exc_info.value.message

    async def test_close(self, gateway, session):
        session.post.return_value = make_response({"content": []})
        await gateway.complete("hi", MODEL)

        gateway.close()

        session.close.assert_called_once()
