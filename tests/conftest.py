"""Test configuration and shared fixtures.

Pattern: Pytest fixtures, conftest.py
"""

from __future__ import annotations

import pytest
from pydantic import SecretStr

from agent_orchestrator.core.config import Settings
from agent_orchestrator.execution.executor import StepExecutor, TurnRequest
from agent_orchestrator.memory.log import GlobalMemoryLog
from agent_orchestrator.models.agents import Agent, Artifact
from agent_orchestrator.models.credentials import ProviderCredentials
from agent_orchestrator.models.workspace import Workspace
from agent_orchestrator.persistence.memory_store import InMemoryPersistence
from agent_orchestrator.pipeline.controller import PipelineController
from tests.fakes.fake_gateway import FakeGateway


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with safe defaults."""
    return Settings(
        environment="testing",
        log_level="DEBUG",
        llm_gateway_url="http://gateway.test",
        temperature=0.2,
        max_output_tokens=512,
    )


@pytest.fixture
def credentials() -> ProviderCredentials:
    """Credentials with gemini and openai keys only."""
    return ProviderCredentials(gemini=SecretStr("gemini-key"), openai=SecretStr("openai-key"))


# ============================================================================
# Domain Fixtures
# ============================================================================

@pytest.fixture
def planner() -> Agent:
    return Agent(
        id="agent-planner",
        name="Planner",
        model="gemini-2.5-flash",
        prompt="You plan things.",
        knowledge=[Artifact(name="style.md", content="Be brief.")],
    )


@pytest.fixture
def writer() -> Agent:
    return Agent(id="agent-writer", name="Writer", model="gpt-4o", prompt="You write things.")


@pytest.fixture
def workspace(planner: Agent, writer: Agent, credentials: ProviderCredentials) -> Workspace:
    """Two-step linear workspace: Planner then Writer."""
    ws = Workspace(agents=[planner, writer], credentials=credentials)
    ws.add_step(planner.id, task_prompt="Outline the work.")
    ws.add_step(writer.id)
    return ws


@pytest.fixture
def memory() -> GlobalMemoryLog:
    return GlobalMemoryLog()


@pytest.fixture
def turn_request(planner: Agent) -> TurnRequest:
    return TurnRequest(agent=planner, step_number=1, user_message="Draft a plan")


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def executor(fake_gateway: FakeGateway, test_settings: Settings) -> StepExecutor:
    return StepExecutor(fake_gateway, settings=test_settings)


@pytest.fixture
def persistence() -> InMemoryPersistence:
    return InMemoryPersistence()


@pytest.fixture
def controller(
    workspace: Workspace,
    fake_gateway: FakeGateway,
    persistence: InMemoryPersistence,
    test_settings: Settings,
) -> PipelineController:
    return PipelineController(
        workspace,
        gateway=fake_gateway,
        persistence=persistence,
        settings=test_settings,
    )
