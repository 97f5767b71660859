"""
Anthropic Messages API implementation of CompletionGateway.
"""

import asyncio
import logging
import threading
from typing import Optional

import requests
from asgiref.sync import sync_to_async

from core.domain.exceptions import CompletionGatewayError
from ledger.ports.completion_gateway import CompletionGateway, CompletionResult

logger = logging.getLogger(__name__)

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

# Upstream usage field -> reported bucket
USAGE_FIELDS = {
    "input_tokens": "input",
    "output_tokens": "output",
    "cache_creation_input_tokens": "cache_creation",
    "cache_read_input_tokens": "cache_read",
}

EMPTY_RESPONSE_TEXT = "No response content received"


class AnthropicCompletionGateway(CompletionGateway):
    """Forwards single-turn prompts to the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        max_tokens: int = 2500,
        timeout: float = 30.0,
        url: str = ANTHROPIC_MESSAGES_URL,
    ):
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.url = url
        self._session: Optional[requests.Session] = None
        self._lock = threading.Lock()

    def _get_session(self) -> requests.Session:
        with self._lock:
            if self._session is None:
                self._session = requests.Session()
                self._session.headers.update(
                    {
                        "Content-Type": "application/json",
                        "x-api-key": self.api_key,
                        "anthropic-version": ANTHROPIC_VERSION,
                    }
                )
            return self._session

    async def complete(self, prompt: str, model: str) -> CompletionResult:
        """
        Send a prompt and collect text and usage.

        Raises:
            CompletionGatewayError: If the key is missing, the call fails,
                times out or returns a non-2xx status
        """
        if not self.api_key:
            raise CompletionGatewayError("Completion API key not configured")

        payload = {
            "model": model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        session = self._get_session()

        try:
            response = await asyncio.wait_for(
                sync_to_async(session.post, thread_sensitive=False)(
                    self.url, json=payload, timeout=self.timeout
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Completion request timed out after %ss", self.timeout)
            raise CompletionGatewayError("Completion request timed out") from exc
        except requests.exceptions.RequestException as exc:
            logger.warning("Completion request failed: %s", exc)
            raise CompletionGatewayError(f"Completion request failed: {exc}") from exc

        if response.status_code != 200:
            try:
                details = response.json()
            except ValueError:
                details = response.text
            logger.error("Completion API returned HTTP %s", response.status_code)
            raise CompletionGatewayError(
                "Completion API request failed", status=response.status_code, details=details
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise CompletionGatewayError(
                "Failed to parse completion response", details=response.text
            ) from exc

        text = "".join(
            block.get("text", "")
            for block in data.get("content") or []
            if block.get("type") == "text"
        )
        raw_usage = data.get("usage") or {}
        usage = {bucket: int(raw_usage.get(name) or 0) for name, bucket in USAGE_FIELDS.items()}

        return CompletionResult(text=text or EMPTY_RESPONSE_TEXT, model=model, usage=usage)

    def close(self) -> None:
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None
