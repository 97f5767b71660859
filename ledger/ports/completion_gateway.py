"""
Completion gateway port (interface).

Forwards a prompt to an upstream language model API.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class CompletionResult:
    """Text and token usage returned by the upstream API."""

    text: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        """Sum of every usage bucket."""
        return sum(self.usage.values())


class CompletionGateway(ABC):
    """Abstract upstream completion client."""

    @abstractmethod
    async def complete(self, prompt: str, model: str) -> CompletionResult:
        """
        Send a single-turn prompt.

        Args:
            prompt: User message
            model: Upstream model name

        Returns:
            CompletionResult

        Raises:
            CompletionGatewayError: On upstream failure or timeout
        """

    def close(self) -> None:
        """Release client resources at shutdown."""
