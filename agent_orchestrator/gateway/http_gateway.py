"""HTTP gateway adapter - completions via an OpenAI-compatible llm-gateway.

The gateway service handles provider routing; this adapter only builds
the chat message list, sends it with the provider key as bearer token,
and classifies failures.

Message layout:
    system    -> system prompt + global memory block
    history   -> prior turns as user/assistant messages
    user      -> knowledge block + attached text files + prompt

Binary artifacts (PDF, images) are not inlined in the chat payload.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from agent_orchestrator.core.constants import KNOWLEDGE_BLOCK_FOOTER, KNOWLEDGE_BLOCK_HEADER
from agent_orchestrator.core.exceptions import GatewayError
from agent_orchestrator.core.logging import get_logger
from agent_orchestrator.gateway.errors import classify_gateway_error
from agent_orchestrator.gateway.protocols import DeltaCallback, GatewayRequest
from agent_orchestrator.models.agents import Artifact
from agent_orchestrator.models.turns import TurnRole


logger = get_logger(__name__)


# =============================================================================
# Message assembly
# =============================================================================


def build_knowledge_block(context: list[Artifact]) -> str:
    """Render text artifacts between the knowledge delimiters; '' when none."""
    if not context:
        return ""
    parts = [f"{KNOWLEDGE_BLOCK_HEADER}\n"]
    for artifact in context:
        if artifact.is_binary:
            continue
        parts.append(f"[File: {artifact.name}]\n{artifact.content}\n")
    parts.append(f"{KNOWLEDGE_BLOCK_FOOTER}\n\n")
    return "".join(parts)


def build_attachment_block(attachments: list[Artifact]) -> str:
    return "".join(
        f"[User Attached File: {a.name}]\n{a.content}\n" for a in attachments if not a.is_binary
    )


def build_messages(request: GatewayRequest) -> list[dict[str, str]]:
    """Build the chat message list for one request."""
    system_prompt = request.system_prompt
    if request.memory_text:
        system_prompt = f"{system_prompt}\n\n{request.memory_text}"

    messages = [{"role": "system", "content": system_prompt}]
    for turn in request.prior_turns:
        role = "user" if turn.role == TurnRole.USER else "assistant"
        messages.append({"role": role, "content": turn.text})

    user_content = (
        build_knowledge_block(request.context)
        + build_attachment_block(request.attachments)
        + request.user_prompt
    )
    messages.append({"role": "user", "content": user_content})
    return messages


def _parse_sse_line(line: str) -> str | None:
    """Return the text delta carried by one SSE line, or None."""
    if not line.startswith("data:"):
        return None
    payload = line[len("data:"):].strip()
    if not payload or payload == "[DONE]":
        return None
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        return None
    choices = data.get("choices") or []
    if not choices:
        return None
    delta = choices[0].get("delta") or {}
    return delta.get("content") or None


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        return error.get("message") or error.get("code") or response.text
    if isinstance(error, str):
        return error
    return response.text or f"HTTP {response.status_code}"


# =============================================================================
# Gateway
# =============================================================================


class HTTPGateway:
    """AIGatewayProtocol implementation over httpx.

    Attributes:
        gateway_url: Base URL of the llm-gateway service.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        gateway_url: str = "http://localhost:8080",
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.gateway_url = gateway_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def completions_url(self) -> str:
        return f"{self.gateway_url}/v1/chat/completions"

    def _body(self, request: GatewayRequest, stream: bool) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": request.model,
            "messages": build_messages(request),
            "temperature": request.temperature,
            "max_tokens": request.max_output_tokens,
        }
        if stream:
            body["stream"] = True
        return body

    @staticmethod
    def _headers(request: GatewayRequest) -> dict[str, str]:
        return {"Authorization": f"Bearer {request.api_key.get_secret_value()}"}

    def _raise_for_status(self, request: GatewayRequest, response: httpx.Response) -> None:
        if response.status_code < 400:
            return
        message = _error_message(response)
        error = classify_gateway_error(
            RuntimeError(message),
            provider=request.provider,
            model=request.model,
            status_code=response.status_code,
        )
        logger.error(
            "gateway_call_failed",
            kind=error.kind,
            provider=request.provider,
            model=request.model,
            status_code=response.status_code,
        )
        raise error

    def _classify(self, request: GatewayRequest, exc: Exception) -> GatewayError:
        error = classify_gateway_error(exc, provider=request.provider, model=request.model)
        logger.error("gateway_call_failed", kind=error.kind, provider=request.provider, model=request.model)
        return error

    async def complete(self, request: GatewayRequest) -> str:
        """Run one completion and return its text."""
        logger.info("gateway_call", provider=request.provider, model=request.model, stream=False)
        try:
            response = await self._client.post(
                self.completions_url,
                json=self._body(request, stream=False),
                headers=self._headers(request),
            )
        except httpx.HTTPError as e:
            raise self._classify(request, e) from e

        self._raise_for_status(request, response)
        data = response.json()
        choices = data.get("choices") or []
        if not choices:
            return ""
        return choices[0].get("message", {}).get("content") or ""

    async def stream(self, request: GatewayRequest, on_delta: DeltaCallback) -> str:
        """Run one streamed completion, reporting each chunk to ``on_delta``."""
        logger.info("gateway_call", provider=request.provider, model=request.model, stream=True)
        cumulative = ""
        try:
            async with self._client.stream(
                "POST",
                self.completions_url,
                json=self._body(request, stream=True),
                headers=self._headers(request),
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    self._raise_for_status(request, response)
                async for line in response.aiter_lines():
                    delta = _parse_sse_line(line)
                    if delta is None:
                        continue
                    cumulative += delta
                    on_delta(delta, cumulative)
        except httpx.HTTPError as e:
            raise self._classify(request, e) from e
        return cumulative

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


__all__ = ["HTTPGateway", "build_knowledge_block", "build_messages"]
