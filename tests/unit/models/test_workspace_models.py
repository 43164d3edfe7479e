"""Unit Tests for the workspace, turn and run models."""

from __future__ import annotations

import pytest

from agent_orchestrator.core.exceptions import PipelineStateError
from agent_orchestrator.models import (
    Agent,
    Artifact,
    LogEntry,
    PipelineMode,
    PipelineRun,
    RunRecord,
    StepStatus,
    Turn,
    TurnRole,
    Workspace,
    latest_output,
    merge_artifacts,
)


class TestWorkspaceAgents:
    def test_delete_agent_cascades_to_steps(self, workspace: Workspace, planner: Agent, writer: Agent) -> None:
        workspace.add_step(planner.id)

        workspace.delete_agent(planner.id)

        assert [a.id for a in workspace.agents] == [writer.id]
        assert [s.agent_id for s in workspace.workflow] == [writer.id]

    def test_update_agent_replaces_fields(self, workspace: Workspace, planner: Agent) -> None:
        updated = workspace.update_agent(planner.id, model="gpt-4o", prompt="New prompt")

        assert workspace.get_agent(planner.id) == updated
        assert updated.model == "gpt-4o"
        assert updated.name == "Planner"

    def test_unknown_agent_is_rejected(self, workspace: Workspace) -> None:
        with pytest.raises(PipelineStateError):
            workspace.get_agent("missing")
        with pytest.raises(PipelineStateError):
            workspace.add_step("missing")

        assert workspace.find_agent("missing") is None

    def test_add_agent_assigns_id(self) -> None:
        workspace = Workspace()

        agent = workspace.add_agent(Agent(name="Critic", model="claude-3-5-sonnet-20241022"))

        assert agent.id
        assert workspace.get_agent(agent.id) is agent


class TestWorkspaceSteps:
    def test_remove_step(self, workspace: Workspace) -> None:
        first = workspace.workflow[0]

        workspace.remove_step(first.id)

        assert first not in workspace.workflow
        with pytest.raises(PipelineStateError):
            workspace.remove_step(first.id)

    def test_step_ids_are_prefixed(self, workspace: Workspace) -> None:
        assert all(s.id.startswith("step-") for s in workspace.workflow)

    def test_attach_and_remove_artifacts(self, workspace: Workspace, writer: Agent) -> None:
        step = workspace.workflow[1]
        workspace.attach_knowledge(writer.id, Artifact(name="tone.md", content="Warm."))
        workspace.attach_step_file(step.id, Artifact(name="brief.txt", content="Brief"))

        assert [a.name for a in workspace.get_agent(writer.id).knowledge] == ["tone.md"]
        assert [a.name for a in workspace.get_step(step.id).files] == ["brief.txt"]

        workspace.remove_artifact(writer.id, "tone.md")
        workspace.remove_artifact(step.id, "brief.txt")

        assert workspace.get_agent(writer.id).knowledge == []
        assert workspace.get_step(step.id).files == []


class TestArtifacts:
    def test_first_name_wins(self) -> None:
        knowledge = [Artifact(name="a.md", content="knowledge")]
        outputs = [Artifact(name="a.md", content="output"), Artifact(name="b.md", content="b")]

        merged = merge_artifacts(knowledge, outputs)

        assert [(a.name, a.content) for a in merged] == [("a.md", "knowledge"), ("b.md", "b")]

    @pytest.mark.parametrize(
        ("mime_type", "binary"),
        [("application/pdf", True), ("image/png", True), ("text/markdown", False), ("application/json", False)],
    )
    def test_is_binary(self, mime_type: str, binary: bool) -> None:
        assert Artifact(name="f", mime_type=mime_type).is_binary is binary


class TestTurns:
    def test_user_turn_keeps_raw_message(self) -> None:
        turn = Turn.user('GOAL:\n"Draft"', message="Draft")

        assert turn.is_user
        assert turn.message == "Draft"

    def test_latest_output(self) -> None:
        history = [Turn.user("q"), Turn.model("a1"), Turn.user("q2"), Turn.model("a2", model_id="gpt-4o")]

        assert latest_output(history) == "a2"
        assert latest_output([Turn.user("q")]) == ""
        assert history[-1].role == TurnRole.MODEL


class TestRunState:
    def test_last_finalized_output_falls_back_to_input(self) -> None:
        run = PipelineRun(initial_input="seed")

        assert run.last_finalized_output() == "seed"

        run.logs.append(LogEntry(step=1, agent_name="Planner", output="Plan A"))
        assert run.last_finalized_output() == "Plan A"

    def test_record_name_truncates_input(self) -> None:
        run = PipelineRun(mode=PipelineMode.INTERACTIVE, initial_input="x" * 50)
        run.memory.record("Planner", 1, "x" * 50, "Plan A")

        record = RunRecord.from_run(run)

        assert record.id == run.run_id
        assert record.name.endswith(" - " + "x" * 30 + "...")
        assert record.mode == PipelineMode.INTERACTIVE
        assert len(record.memory) == 1

    def test_log_steps_are_one_based(self) -> None:
        with pytest.raises(ValueError):
            LogEntry(step=0, agent_name="Planner", output="")

    def test_log_status_round_trips_as_completed(self) -> None:
        entry = LogEntry(step=1, agent_name="Planner", output="Plan A")

        assert entry.status == StepStatus.COMPLETED
        assert entry.model_dump(mode="json")["status"] == "completed"
        assert LogEntry.model_validate_json(entry.model_dump_json()).status == StepStatus.COMPLETED
