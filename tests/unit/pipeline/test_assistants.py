"""Unit Tests for run summaries and agent generation."""

from __future__ import annotations

import pytest
from pydantic import SecretStr

from agent_orchestrator.core.exceptions import AgentGenerationError, MissingCredentialError, UpstreamServerError
from agent_orchestrator.memory import MemoryEntry
from agent_orchestrator.models import ProviderCredentials, RunRecord
from agent_orchestrator.pipeline import generate_agent, summarize_run
from agent_orchestrator.pipeline.assistants import parse_agent_spec, pick_generator_model
from tests.fakes.fake_gateway import FakeGateway


@pytest.fixture
def record() -> RunRecord:
    return RunRecord(
        initial_input="Draft a plan",
        memory=[
            MemoryEntry.create("Planner", 1, "Draft a plan", "Plan A"),
            MemoryEntry.create("Writer", 2, "Plan A", "Final"),
        ],
    )


class TestSummarizeRun:
    @pytest.mark.asyncio
    async def test_summary_prompt_lists_agent_responses(
        self, credentials: ProviderCredentials, record: RunRecord
    ) -> None:
        gateway = FakeGateway(responses=["Short report"])

        summary = await summarize_run(gateway, credentials, "gpt-4o", record)

        assert summary == "Short report"
        request = gateway.last_request
        assert "[Planner]: Plan A\n\n[Writer]: Final" in request.user_prompt
        assert request.provider == "openai"
        assert request.memory_text == ""

    @pytest.mark.asyncio
    async def test_missing_key(self, credentials: ProviderCredentials, record: RunRecord) -> None:
        with pytest.raises(MissingCredentialError):
            await summarize_run(FakeGateway(), credentials, "grok-3-mini", record)

    @pytest.mark.asyncio
    async def test_gateway_error_propagates(self, credentials: ProviderCredentials, record: RunRecord) -> None:
        gateway = FakeGateway(errors=[UpstreamServerError("down")])

        with pytest.raises(UpstreamServerError):
            await summarize_run(gateway, credentials, "gpt-4o", record)


class TestGenerateAgent:
    @pytest.mark.asyncio
    async def test_fenced_json_becomes_agent(self) -> None:
        gateway = FakeGateway(
            responses=['```json\n{"name": "Critic", "prompt": "You critique.", "model": "gpt-4o"}\n```']
        )
        credentials = ProviderCredentials(anthropic=SecretStr("a"))

        agent = await generate_agent(gateway, credentials, "someone who reviews drafts")

        assert (agent.name, agent.prompt, agent.model) == ("Critic", "You critique.", "gpt-4o")
        assert gateway.last_request.model == "claude-3-5-haiku-20241022"
        assert "someone who reviews drafts" in gateway.last_request.user_prompt

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, credentials: ProviderCredentials) -> None:
        gateway = FakeGateway(responses=["Sure! Here is your agent."])

        with pytest.raises(AgentGenerationError) as exc_info:
            await generate_agent(gateway, credentials, "a reviewer")

        assert exc_info.value.raw_output == "Sure! Here is your agent."

    @pytest.mark.asyncio
    async def test_blank_description_raises(self, credentials: ProviderCredentials) -> None:
        with pytest.raises(AgentGenerationError):
            await generate_agent(FakeGateway(), credentials, "  ")

    def test_generator_model_follows_preference_order(self, credentials: ProviderCredentials) -> None:
        assert pick_generator_model(credentials) == "gemini-2.5-flash"
        assert pick_generator_model(ProviderCredentials(xai=SecretStr("x"))) == "grok-3-mini"

    def test_no_keys(self) -> None:
        with pytest.raises(MissingCredentialError):
            pick_generator_model(ProviderCredentials())

    def test_missing_fields_use_defaults(self) -> None:
        spec = parse_agent_spec('{"name": "Scout"}')

        assert spec.name == "Scout"
        assert spec.model == "gemini-2.5-flash"

    def test_non_object_is_rejected(self) -> None:
        with pytest.raises(AgentGenerationError):
            parse_agent_spec("[1, 2]")
