"""AI gateway contract.

Duck typing protocol for completion backends - enables FakeGateway
substitution in tests.

Pattern: Protocol duck typing
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field, SecretStr

from agent_orchestrator.models.agents import Artifact
from agent_orchestrator.models.turns import Turn


DeltaCallback = Callable[[str, str], None]
"""Called with (delta_text, cumulative_text) for each streamed chunk."""


class GatewayRequest(BaseModel):
    """Everything a backend needs to produce one completion."""

    provider: str
    model: str
    api_key: SecretStr
    system_prompt: str = ""
    user_prompt: str
    context: list[Artifact] = Field(default_factory=list, description="Knowledge artifacts")
    prior_turns: list[Turn] = Field(default_factory=list)
    attachments: list[Artifact] = Field(default_factory=list)
    memory_text: str = Field(default="", description="Formatted global memory block")
    temperature: float = 0.7
    max_output_tokens: int = 4096


@runtime_checkable
class AIGatewayProtocol(Protocol):
    """Protocol for completion backends.

    Methods:
        complete: Return the full completion text
        stream: Deliver chunks through a callback, then return the full text
    """

    async def complete(self, request: GatewayRequest) -> str:
        """Run one completion.

        Args:
            request: Prompt, context and credentials for the call

        Returns:
            Completed text

        Raises:
            GatewayError: Classified failure
        """
        ...

    async def stream(self, request: GatewayRequest, on_delta: DeltaCallback) -> str:
        """Run one streamed completion.

        Args:
            request: Prompt, context and credentials for the call
            on_delta: Called per chunk with (delta, cumulative)

        Returns:
            Completed text (equal to the last cumulative value)

        Raises:
            GatewayError: Classified failure, including mid-stream failures
        """
        ...


__all__ = ["AIGatewayProtocol", "DeltaCallback", "GatewayRequest"]
