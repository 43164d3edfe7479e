"""Helper completions outside the pipeline: run summaries and agent generation.

Both calls skip guardrails and global memory.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, SecretStr, ValidationError

from agent_orchestrator.core.exceptions import (
    AgentGenerationError,
    GatewayError,
    MissingCredentialError,
)
from agent_orchestrator.core.logging import get_logger
from agent_orchestrator.gateway.errors import classify_gateway_error
from agent_orchestrator.gateway.protocols import GatewayRequest
from agent_orchestrator.gateway.providers import has_credential_for_model, provider_for_model
from agent_orchestrator.models.agents import Agent


if TYPE_CHECKING:
    from agent_orchestrator.gateway.protocols import AIGatewayProtocol
    from agent_orchestrator.models.credentials import ProviderCredentials
    from agent_orchestrator.models.run import RunRecord


logger = get_logger(__name__)

GENERATOR_MODELS: tuple[str, ...] = (
    "gemini-2.5-flash",
    "gpt-4o-mini",
    "claude-3-5-haiku-20241022",
    "grok-3-mini",
)
DEFAULT_GENERATED_MODEL = "gemini-2.5-flash"

SUMMARY_SYSTEM_PROMPT = "You are a summarizer."
GENERATOR_SYSTEM_PROMPT = "You are an agent generator."

_GENERATOR_PROMPT = """Create a configuration for an AI agent based on this user request: '{description}'.

Return ONLY valid JSON with no markdown formatting. The JSON should have these keys:
- 'name': A creative name for the agent (string)
- 'prompt': A detailed, professional system instruction for the agent (string). Be thorough.
- 'model': Suggested model (use 'gemini-2.5-flash' for fast tasks, 'gpt-4o' for complex reasoning, 'claude-3-5-sonnet-20241022' for writing)."""

_FENCE = re.compile(r"```(?:json)?")


class GeneratedAgentSpec(BaseModel):
    """Shape of the generator's JSON answer."""

    name: str = Field(default="Generated Agent", min_length=1)
    prompt: str = Field(default="You are a helpful assistant.", min_length=1)
    model: str = Field(default=DEFAULT_GENERATED_MODEL, min_length=1)


async def _complete(
    gateway: AIGatewayProtocol,
    credentials: ProviderCredentials,
    model: str,
    system_prompt: str,
    prompt: str,
) -> str:
    provider = provider_for_model(model)
    key = credentials.for_provider(provider)
    if key is None:
        raise MissingCredentialError(f"No API key configured for {provider.upper()}", provider=provider, model=model)
    request = GatewayRequest(
        provider=provider,
        model=model,
        api_key=SecretStr(key),
        system_prompt=system_prompt,
        user_prompt=prompt,
    )
    try:
        return await gateway.complete(request)
    except GatewayError:
        raise
    except Exception as e:
        raise classify_gateway_error(e, provider=provider, model=model) from e


def summary_prompt(record: RunRecord) -> str:
    history = "\n\n".join(f"[{entry.agent_name}]: {entry.agent_response}" for entry in record.memory)
    return f"Please summarize the following session history into a concise report:\n\n{history}"


async def summarize_run(
    gateway: AIGatewayProtocol,
    credentials: ProviderCredentials,
    model: str,
    record: RunRecord,
) -> str:
    """Summarize a saved run's agent responses into a short report."""
    logger.info("run_summary_requested", run_id=record.id, model=model)
    return await _complete(gateway, credentials, model, SUMMARY_SYSTEM_PROMPT, summary_prompt(record))


def pick_generator_model(credentials: ProviderCredentials) -> str:
    """First generator model whose provider has a key."""
    for model in GENERATOR_MODELS:
        if has_credential_for_model(credentials, model):
            return model
    raise MissingCredentialError("Please enter at least one API key first.")


def parse_agent_spec(raw: str) -> GeneratedAgentSpec:
    """Parse the generator's answer, tolerating markdown code fences.

    Raises:
        AgentGenerationError: Not a JSON object of the expected shape.
    """
    cleaned = _FENCE.sub("", raw).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise AgentGenerationError(f"Agent generator returned invalid JSON: {e.msg}", raw_output=raw) from e
    if not isinstance(data, dict):
        raise AgentGenerationError("Agent generator did not return a JSON object", raw_output=raw)
    try:
        return GeneratedAgentSpec.model_validate(data)
    except ValidationError as e:
        raise AgentGenerationError(f"Agent generator returned an invalid configuration: {e}", raw_output=raw) from e


async def generate_agent(
    gateway: AIGatewayProtocol,
    credentials: ProviderCredentials,
    description: str,
) -> Agent:
    """Ask a model to design an agent for ``description``.

    Raises:
        MissingCredentialError: No provider key at all.
        AgentGenerationError: The answer could not be parsed.
        GatewayError: The completion call failed.
    """
    if not description.strip():
        raise AgentGenerationError("An agent description is required")
    model = pick_generator_model(credentials)
    raw = await _complete(
        gateway,
        credentials,
        model,
        GENERATOR_SYSTEM_PROMPT,
        _GENERATOR_PROMPT.format(description=description),
    )
    spec = parse_agent_spec(raw)
    logger.info("agent_generated", name=spec.name, model=spec.model)
    return Agent(name=spec.name, model=spec.model, prompt=spec.prompt)


__all__ = [
    "GENERATOR_MODELS",
    "GeneratedAgentSpec",
    "generate_agent",
    "parse_agent_spec",
    "pick_generator_model",
    "summarize_run",
]
