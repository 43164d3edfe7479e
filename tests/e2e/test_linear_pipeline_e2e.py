"""End-to-end pipeline scenarios.

Drives a two-step linear run through the real HTTP gateway adapter
(httpx.MockTransport stands in for the completion service) and the JSON
file store, then resumes, redoes and rolls back the saved run.
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from agent_orchestrator.core.config import Settings
from agent_orchestrator.gateway import HTTPGateway
from agent_orchestrator.models import ExecutionState, Workspace
from agent_orchestrator.persistence import JSONFilePersistence
from agent_orchestrator.pipeline import PipelineController


class ScriptedCompletionService:
    """Answers chat-completion calls from a script and records the bodies."""

    def __init__(self, *outputs: str) -> None:
        self.outputs = list(outputs)
        self.bodies: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"choices": [{"message": {"content": self.outputs.pop(0)}}]})


@pytest.fixture
def store(tmp_path: Path) -> JSONFilePersistence:
    return JSONFilePersistence(tmp_path / "store")


def _controller(
    workspace: Workspace, service: ScriptedCompletionService, store: JSONFilePersistence, settings: Settings
) -> PipelineController:
    client = httpx.AsyncClient(transport=httpx.MockTransport(service))
    gateway = HTTPGateway(settings.llm_gateway_url, client=client)
    return PipelineController(workspace, gateway=gateway, persistence=store, settings=settings)


@pytest.mark.asyncio
async def test_two_step_linear_run(
    workspace: Workspace, store: JSONFilePersistence, test_settings: Settings
) -> None:
    service = ScriptedCompletionService("Plan A", "Final")
    controller = _controller(workspace, service, store, test_settings)

    controller.start("Draft a plan")
    await controller.send_turn()
    controller.finalize_step()

    assert [(log.step, log.output) for log in controller.logs] == [(1, "Plan A")]
    assert controller.pipeline_files[0].content == "Plan A"
    assert controller.active_step_index == 1
    assert controller.run.chat_input == "Plan A"

    await controller.send_turn()
    controller.finalize_step()

    assert controller.execution_state == ExecutionState.COMPLETE
    assert len(controller.logs) == 2

    first, second = service.bodies
    assert first["model"] == "gemini-2.5-flash"
    assert "=== KNOWLEDGE BASE ===\n[File: style.md]\nBe brief." in first["messages"][-1]["content"]
    assert second["model"] == "gpt-4o"
    assert "[File: Output_Step_1_Planner.md]\nPlan A" in second["messages"][-1]["content"]
    assert "=== GLOBAL CONVERSATION LOG ===" in second["messages"][0]["content"]

    runs = store.load_all_runs()
    assert [log.output for log in runs[0].logs] == ["Plan A", "Final"]
    assert (store.data_dir / "runs" / f"{runs[0].id}.json").exists()


@pytest.mark.asyncio
async def test_resume_redo_and_rollback_from_saved_run(
    workspace: Workspace, store: JSONFilePersistence, test_settings: Settings
) -> None:
    service = ScriptedCompletionService("Plan A", "Final", "Final v2", "Plan B")
    controller = _controller(workspace, service, store, test_settings)
    controller.start("Draft a plan")
    for _ in range(2):
        await controller.send_turn()
        controller.finalize_step()

    # Resume the saved run in a fresh controller
    record = store.load_all_runs()[0]
    resumed = _controller(workspace, service, store, test_settings)
    resumed.resume_run(record)

    assert resumed.active_step_index == 1
    assert [t.text for t in resumed.step_history] == ["Plan A", "Final"]

    await resumed.send_turn("Make it punchier")
    resumed.finalize_step()

    assert resumed.execution_state == ExecutionState.COMPLETE
    assert [log.output for log in resumed.logs] == ["Plan A", "Final v2"]

    resumed.rollback(0)
    await resumed.send_turn()
    resumed.finalize_step()

    assert [log.output for log in resumed.logs] == ["Plan B"]
    assert resumed.run.chat_input == "Plan B"
    assert "Draft a plan" in service.bodies[-1]["messages"][-1]["content"]
