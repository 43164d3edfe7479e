"""Pipeline controller - the top-level state machine.

States:
    idle -> running -> interacting          (linear mode)
    idle -> choosing_next -> interacting    (interactive mode)
    interacting -> interacting              (linear: finalize advances)
    interacting -> choosing_next            (interactive: finalize)
    interacting -> complete                 (linear: last step finalized)
    any -> idle                             (cancel)

The controller owns one PipelineRun and mutates it only from its own
operations. Callers observe changes through ``subscribe``.

Late results:
    Cancel, start, step initialization and rollback bump an epoch
    counter. A turn or comparison that resolves under an older epoch is
    dropped without touching the run. Memory writes from such calls land
    in the log object captured at call time, which the new run no
    longer references.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import TYPE_CHECKING

from agent_orchestrator.branching.manager import Branch, BranchManager
from agent_orchestrator.comparison.runner import ComparisonResult, ComparisonRunner, ProgressCallback
from agent_orchestrator.core.config import Settings, get_settings
from agent_orchestrator.core.constants import OUTPUT_ARTIFACT_MIME_TYPE
from agent_orchestrator.core.exceptions import (
    GatewayError,
    InvalidIndexError,
    MissingCredentialError,
    PipelineStateError,
    PreconditionError,
    ResumeMismatchError,
    StepInProgressError,
)
from agent_orchestrator.core.logging import get_logger
from agent_orchestrator.execution.executor import (
    BlockedResult,
    StepExecutor,
    TurnRequest,
    TurnResult,
    compose_prompt,
    history_text,
)
from agent_orchestrator.memory.log import GlobalMemoryLog
from agent_orchestrator.models.agents import Agent, Artifact, WorkflowStep
from agent_orchestrator.models.run import (
    ExecutionState,
    LogEntry,
    PipelineMode,
    PipelineRun,
    RunRecord,
    StepStatus,
)
from agent_orchestrator.models.turns import Turn, TurnRole


if TYPE_CHECKING:
    from agent_orchestrator.gateway.protocols import AIGatewayProtocol, DeltaCallback
    from agent_orchestrator.models.workspace import Workspace
    from agent_orchestrator.persistence.protocols import PersistenceProtocol


logger = get_logger(__name__)

Listener = Callable[[PipelineRun], None]

_ACTIVE_STATES = (ExecutionState.RUNNING, ExecutionState.CHOOSING_NEXT, ExecutionState.INTERACTING)
_ROLLBACK_STATES = (ExecutionState.INTERACTING, ExecutionState.CHOOSING_NEXT, ExecutionState.COMPLETE)


def output_artifact_name(step_number: int, agent_name: str) -> str:
    return f"Output_Step_{step_number}_{agent_name}.md"


class PipelineController:
    """Drives a workspace's workflow through the step executor.

    Args:
        workspace: Agents, workflow, credentials and switches.
        gateway: Completion backend; required unless ``executor`` is given.
        executor: Pre-built step executor.
        persistence: Store for completed runs; optional.
        settings: Engine settings; defaults to ``get_settings()``.
    """

    def __init__(
        self,
        workspace: Workspace,
        gateway: AIGatewayProtocol | None = None,
        executor: StepExecutor | None = None,
        persistence: PersistenceProtocol | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        if executor is None:
            if gateway is None:
                raise ValueError("PipelineController needs a gateway or an executor")
            executor = StepExecutor(gateway, settings=self._settings)
        self.workspace = workspace
        self._executor = executor
        self._comparison = ComparisonRunner(executor)
        self._branches = BranchManager()
        self._persistence = persistence
        self._listeners: list[Listener] = []
        self._epoch = 0
        self._comparison_request: TurnRequest | None = None
        self.run = PipelineRun(mode=workspace.mode, memory=self._new_memory())

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def execution_state(self) -> ExecutionState:
        return self.run.execution_state

    @property
    def active_step_index(self) -> int | None:
        return self.run.active_step_index

    @property
    def step_history(self) -> list[Turn]:
        return list(self.run.step_history)

    @property
    def logs(self) -> list[LogEntry]:
        return list(self.run.logs)

    @property
    def pipeline_files(self) -> list[Artifact]:
        return list(self.run.pipeline_files)

    @property
    def branches(self) -> list[Branch]:
        return self._branches.branches

    @property
    def active_branch_id(self) -> str:
        return self._branches.active_branch_id

    def memory_text(self) -> str:
        return self.run.memory.format()

    # =========================================================================
    # Notifications
    # =========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state-change listener; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.run)

    # =========================================================================
    # Guards and lookups
    # =========================================================================

    def _new_memory(self, entries: list | None = None) -> GlobalMemoryLog:
        return GlobalMemoryLog(
            entries,
            user_limit=self._settings.memory_user_message_limit,
            response_limit=self._settings.memory_agent_response_limit,
        )

    def _require_idle_turn(self) -> None:
        if self.run.is_processing:
            raise StepInProgressError("A turn is already in progress")

    def _require_state(self, *states: ExecutionState) -> None:
        if self.run.execution_state not in states:
            allowed = ", ".join(s.value for s in states)
            raise PipelineStateError(
                f"Not allowed in state '{self.run.execution_state.value}' (expected {allowed})",
                state=self.run.execution_state.value,
            )

    def _require_interacting(self) -> None:
        self._require_state(ExecutionState.INTERACTING)
        self._require_idle_turn()

    def _active_step(self) -> tuple[int, WorkflowStep, Agent]:
        index = self.run.active_step_index
        if index is None or index >= len(self.workspace.workflow):
            raise PipelineStateError("No active step", state=self.run.execution_state.value)
        step = self.workspace.workflow[index]
        return index, step, self.workspace.get_agent(step.agent_id)

    def _bump_epoch(self) -> int:
        self._epoch += 1
        return self._epoch

    def _is_current(self, epoch: int, run: PipelineRun) -> bool:
        return epoch == self._epoch and run is self.run

    # =========================================================================
    # Pipeline lifecycle
    # =========================================================================

    def start(self, seed_input: str, mode: PipelineMode | None = None) -> None:
        """Start a new run.

        Raises:
            MissingCredentialError: No provider key configured at all.
            PipelineStateError: Already running, empty input, or a linear
                run with no workflow steps.
        """
        self._require_state(ExecutionState.IDLE, ExecutionState.COMPLETE)
        if not self.workspace.credentials.has_any():
            raise MissingCredentialError("Missing API key. Please add at least one API key.")
        if not seed_input.strip():
            raise PipelineStateError("An initial input is required", state=self.run.execution_state.value)

        mode = mode or self.workspace.mode
        if mode == PipelineMode.LINEAR and not self.workspace.workflow:
            raise PipelineStateError("The workflow has no steps", state=self.run.execution_state.value)

        self.workspace.mode = mode
        self._bump_epoch()
        self._branches.reset()
        self.run = PipelineRun(mode=mode, initial_input=seed_input, memory=self._new_memory())
        logger.info("pipeline_started", run_id=self.run.run_id, mode=mode.value, steps=len(self.workspace.workflow))

        if mode == PipelineMode.INTERACTIVE:
            self.workspace.workflow = []
            self.run.execution_state = ExecutionState.CHOOSING_NEXT
            self._notify()
            return

        self.run.execution_state = ExecutionState.RUNNING
        self.init_step(0, seed_input)

    def init_step(self, index: int, seed_input: str) -> None:
        """Make ``index`` the active step, or complete a finished linear run."""
        self._bump_epoch()
        self._branches.reset()
        run = self.run
        if run.mode == PipelineMode.LINEAR and index >= len(self.workspace.workflow):
            self._complete()
            return
        if not 0 <= index < len(self.workspace.workflow):
            raise InvalidIndexError(
                f"Step {index} does not exist",
                index=index,
                valid_range=f"0..{len(self.workspace.workflow) - 1}",
            )

        run.active_step_index = index
        run.step_history = []
        run.pending_attachments = []
        run.chat_input = seed_input
        run.guardrail_warning = None
        run.last_error = None
        run.pending_comparison = None
        run.execution_state = ExecutionState.INTERACTING
        self._comparison_request = None
        logger.info("step_initialized", run_id=run.run_id, step=index + 1)
        self._notify()

    def finalize_step(self) -> LogEntry:
        """Commit the active step's latest output and advance.

        Re-finalizing a step number overwrites its log entry and output
        artifact rather than adding new ones.

        Raises:
            PipelineStateError: Not interacting, or the step has no output yet.
            StepInProgressError: A turn is in flight.
        """
        self._require_interacting()
        index, _, agent = self._active_step()
        run = self.run
        if not any(t.role == TurnRole.MODEL for t in run.step_history):
            raise PipelineStateError("The active step has no output to finalize", state=run.execution_state.value)

        output = run.current_output
        step_number = index + 1
        entry = LogEntry(step=step_number, agent_name=agent.name, status=StepStatus.COMPLETED, output=output)
        artifact = Artifact(
            name=output_artifact_name(step_number, agent.name),
            mime_type=OUTPUT_ARTIFACT_MIME_TYPE,
            content=output,
        )

        position = next((i for i, log in enumerate(run.logs) if log.step == step_number), None)
        if position is None:
            run.logs.append(entry)
            run.pipeline_files.append(artifact)
        else:
            run.logs[position] = entry
            run.pipeline_files[position] = artifact
        logger.info("step_finalized", run_id=run.run_id, step=step_number, agent=agent.name, redo=position is not None)

        if run.mode == PipelineMode.INTERACTIVE:
            self._bump_epoch()
            self._branches.reset()
            run.active_step_index = None
            run.step_history = []
            run.chat_input = ""
            run.execution_state = ExecutionState.CHOOSING_NEXT
            self._notify()
        else:
            self.init_step(index + 1, output)
        return entry

    def add_interactive_step(self, agent_id: str) -> WorkflowStep:
        """Append a step for ``agent_id`` and make it active (interactive mode)."""
        if self.run.mode != PipelineMode.INTERACTIVE:
            raise PipelineStateError("Steps can only be added in interactive mode", state=self.run.execution_state.value)
        self._require_state(ExecutionState.CHOOSING_NEXT)
        self._require_idle_turn()

        step = self.workspace.add_step(agent_id)
        self.init_step(len(self.workspace.workflow) - 1, self.run.last_finalized_output())
        return step

    def rollback(self, target_index: int) -> None:
        """Destructively rewind the run to ``target_index``.

        Logs and pipeline files keep ``target_index`` entries, memory keeps
        entries up to step number ``target_index``, and in interactive mode
        the workflow keeps ``target_index + 1`` steps. The target step
        restarts with the previous step's output as its seed.

        Raises:
            InvalidIndexError: Target outside ``0..len(logs)`` or past the workflow.
            PipelineStateError: Not allowed in the current state.
            StepInProgressError: A turn is in flight.
        """
        self._require_state(*_ROLLBACK_STATES)
        self._require_idle_turn()
        run = self.run
        if not 0 <= target_index <= len(run.logs) or target_index >= len(self.workspace.workflow):
            raise InvalidIndexError(
                f"Cannot roll back to step {target_index}",
                index=target_index,
                valid_range=f"0..{min(len(run.logs), len(self.workspace.workflow) - 1)}",
            )

        if run.mode == PipelineMode.INTERACTIVE:
            self.workspace.workflow = self.workspace.workflow[: target_index + 1]
        run.logs = run.logs[:target_index]
        run.pipeline_files = run.pipeline_files[:target_index]
        run.memory = run.memory.filter_up_to(target_index)

        seed = run.initial_input if target_index == 0 else run.pipeline_files[target_index - 1].content
        logger.info("pipeline_rolled_back", run_id=run.run_id, step=target_index + 1)
        self.init_step(target_index, seed)

    def cancel(self) -> None:
        """Abandon the run and return to idle. In-flight calls are not cancelled."""
        self._bump_epoch()
        self._branches.reset()
        self._comparison_request = None
        previous = self.run
        self.run = PipelineRun(mode=previous.mode, memory=self._new_memory())
        logger.info("pipeline_cancelled", run_id=previous.run_id, step=previous.active_step_index)
        self._notify()

    def finish_early(self) -> RunRecord | None:
        """Mark the run complete from any active state and persist it."""
        self._require_state(*_ACTIVE_STATES)
        self._require_idle_turn()
        self._bump_epoch()
        return self._complete()

    def _complete(self) -> RunRecord | None:
        run = self.run
        run.execution_state = ExecutionState.COMPLETE
        run.active_step_index = None
        run.step_history = []
        run.chat_input = ""
        run.pending_comparison = None
        logger.info("pipeline_completed", run_id=run.run_id, steps=len(run.logs))
        record = self._save_run()
        self._notify()
        return record

    # =========================================================================
    # Turns
    # =========================================================================

    def _turn_request(
        self,
        message: str,
        attachments: list[Artifact],
        prior_turns: list[Turn],
        override_guardrails: bool,
    ) -> TurnRequest:
        index, step, agent = self._active_step()
        return TurnRequest(
            agent=agent,
            step_number=index + 1,
            user_message=message,
            prior_turns=prior_turns,
            step=step,
            pipeline_files=list(self.run.pipeline_files),
            attachments=attachments,
            override_guardrails=override_guardrails,
            guardrails_enabled=self.workspace.guardrails_enabled,
            guardrail_settings=self.workspace.guardrail_settings,
            memory_enabled=self.workspace.global_memory_enabled,
        )

    async def send_turn(
        self,
        message: str | None = None,
        attachments: list[Artifact] | None = None,
        override_guardrails: bool = False,
        on_delta: DeltaCallback | None = None,
    ) -> TurnResult | BlockedResult | None:
        """Send a user turn for the active step.

        With no ``message`` the pending chat input is sent (the seed input
        on a step's opening turn). Passing ``on_delta`` streams the reply.

        Returns:
            TurnResult, BlockedResult, or None when the run moved on
            before the reply arrived.

        Raises:
            PipelineStateError: Not interacting, or nothing to send.
            StepInProgressError: Another turn is in flight.
            GatewayError: Classified gateway failure; pending input is kept.
        """
        self._require_interacting()
        message = self.run.chat_input if message is None else message
        attachments = list(self.run.pending_attachments if attachments is None else attachments)
        if self.run.step_history and not message.strip() and not attachments:
            raise PipelineStateError("Nothing to send", state=self.run.execution_state.value)
        return await self._run_turn(message, attachments, list(self.run.step_history), override_guardrails, on_delta)

    async def _run_turn(
        self,
        message: str,
        attachments: list[Artifact],
        prior_turns: list[Turn],
        override_guardrails: bool,
        on_delta: DeltaCallback | None,
    ) -> TurnResult | BlockedResult | None:
        request = self._turn_request(message, attachments, prior_turns, override_guardrails)
        run = self.run
        epoch = self._epoch

        self._discard_comparison()
        run.is_processing = True
        run.guardrail_warning = None
        run.last_error = None
        run.chat_input = ""
        run.pending_attachments = []
        self._notify()

        # A failed or cancelled turn hands the draft back to the input box.
        completed = False
        try:
            outcome = await self._executor.execute_turn(
                request, run.memory, self.workspace.credentials, on_delta=on_delta
            )
            completed = True
        except GatewayError as e:
            if self._is_current(epoch, run):
                run.last_error = e
            else:
                logger.info("stale_result_dropped", run_id=run.run_id, error=e.kind)
            raise
        finally:
            if not completed and self._is_current(epoch, run):
                run.is_processing = False
                run.chat_input = message
                run.pending_attachments = attachments
                self._notify()

        if not self._is_current(epoch, run):
            logger.info("stale_result_dropped", run_id=run.run_id)
            return None

        run.is_processing = False
        if isinstance(outcome, BlockedResult):
            run.chat_input = message
            run.pending_attachments = attachments
            run.guardrail_warning = outcome.verdict
        else:
            run.step_history = [*prior_turns, outcome.user_turn, outcome.model_turn]
        self._notify()
        return outcome

    async def edit_turn(self, index: int, new_text: str) -> TurnResult | BlockedResult | None:
        """Replace a past user turn and re-run from there.

        The pre-edit history is kept as a branch. Attachments of the
        original turn are not re-sent.

        Raises:
            InvalidIndexError: ``index`` is not a user turn in the history.
        """
        self._require_interacting()
        history = self.run.step_history
        if not 0 <= index < len(history) or history[index].role != TurnRole.USER:
            raise InvalidIndexError(f"Turn {index} is not a user turn", index=index)
        if not new_text.strip():
            raise PreconditionError("Edited message cannot be empty")

        self._branches.fork(history, index - 1)
        prior = copy.deepcopy(history[:index])
        self.run.step_history = list(prior)
        return await self._run_turn(new_text, [], prior, False, None)

    async def regenerate_turn(self, index: int) -> TurnResult | BlockedResult | None:
        """Replace the last agent reply by re-sending the user turn before it.

        No branch is created.

        Raises:
            InvalidIndexError: ``index`` is not the last turn, or is not an
                agent reply that follows a user turn.
        """
        self._require_interacting()
        history = self.run.step_history
        if (
            index != len(history) - 1
            or index < 1
            or history[index].role != TurnRole.MODEL
            or history[index - 1].role != TurnRole.USER
        ):
            raise InvalidIndexError(f"Turn {index} is not the latest agent reply", index=index)

        user_turn = history[index - 1]
        prior = list(history[: index - 1])
        self.run.step_history = list(prior)
        message = user_turn.message if user_turn.message is not None else user_turn.text
        return await self._run_turn(message, [], prior, False, None)

    # =========================================================================
    # Branching
    # =========================================================================

    def fork_at(self, index: int) -> str:
        """Branch the active step's history after turn ``index``."""
        self._require_interacting()
        history = self.run.step_history
        branch_id = self._branches.fork(history, index)
        self.run.step_history = copy.deepcopy(history[: index + 1])
        self._discard_comparison()
        logger.info("branch_created", branch=branch_id, at_turn=index)
        self._notify()
        return branch_id

    def switch_branch(self, branch_id: str) -> list[Turn]:
        """Replace the live history with ``branch_id``'s stored history."""
        self._require_interacting()
        self.run.step_history = self._branches.switch_to(branch_id)
        self._discard_comparison()
        self._notify()
        return list(self.run.step_history)

    # =========================================================================
    # Comparison
    # =========================================================================

    async def compare_models(
        self,
        model_ids: list[str],
        message: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> list[ComparisonResult] | None:
        """Send one user turn to several models concurrently.

        Results are held as the pending batch until one is selected or
        the batch is dismissed. Returns None when the run moved on first.
        """
        self._require_interacting()
        message = self.run.chat_input if message is None else message
        if not message.strip():
            raise PipelineStateError("Nothing to send", state=self.run.execution_state.value)

        request = self._turn_request(message, [], list(self.run.step_history), True)
        run = self.run
        epoch = self._epoch
        self._discard_comparison()
        run.is_processing = True
        self._notify()

        completed = False
        try:
            results = await self._comparison.compare(
                model_ids, request, run.memory, self.workspace.credentials, on_progress
            )
            completed = True
        finally:
            if not completed and self._is_current(epoch, run):
                run.is_processing = False
                self._notify()

        if not self._is_current(epoch, run):
            logger.info("stale_result_dropped", run_id=run.run_id, comparison=True)
            return None

        run.is_processing = False
        run.pending_comparison = results
        self._comparison_request = request
        self._notify()
        return results

    def select_comparison_result(self, result: ComparisonResult) -> Turn:
        """Commit one comparison result as the step's latest turn."""
        self._require_interacting()
        run = self.run
        request = self._comparison_request
        if run.pending_comparison is None or request is None:
            raise PreconditionError("No comparison is pending")
        if result not in run.pending_comparison:
            raise PreconditionError(f"Result for {result.model_id} is not part of the pending comparison")
        if not result.succeeded:
            raise PreconditionError(f"Result for {result.model_id} failed and cannot be selected")

        prompt = compose_prompt(request)
        user_turn = Turn.user(history_text(request, prompt), message=request.user_message)
        model_turn = Turn.model(result.output, model_id=result.model_id)
        run.step_history = [*run.step_history, user_turn, model_turn]
        if request.memory_enabled:
            run.memory.record(request.agent.name, request.step_number, request.user_message, result.output)

        run.pending_comparison = None
        run.chat_input = ""
        self._comparison_request = None
        logger.info("comparison_selected", model=result.model_id, step=request.step_number)
        self._notify()
        return model_turn

    def _discard_comparison(self) -> None:
        self.run.pending_comparison = None
        self._comparison_request = None

    def dismiss_comparison(self) -> None:
        self._discard_comparison()
        self._notify()

    # =========================================================================
    # Run history and exports
    # =========================================================================

    def _save_run(self) -> RunRecord | None:
        if self._persistence is None:
            return None
        record = RunRecord.from_run(self.run)
        self._persistence.save_run(record)
        logger.info("run_saved", run_id=record.id, steps=len(record.logs))
        return record

    def saved_runs(self) -> list[RunRecord]:
        if self._persistence is None:
            return []
        return self._persistence.load_all_runs()

    def delete_run(self, run_id: str) -> bool:
        if self._persistence is None:
            return False
        return self._persistence.delete_run(run_id)

    def resume_run(self, record: RunRecord) -> None:
        """Restore a saved run and continue at its last logged step.

        Raises:
            ResumeMismatchError: The saved run's last step does not exist in
                the current workflow.
            PipelineStateError: Another run is still in progress.
            StepInProgressError: A turn is in flight.
        """
        self._require_state(ExecutionState.IDLE, ExecutionState.COMPLETE)
        self._require_idle_turn()
        resume_index = len(record.logs) - 1 if record.logs else 0
        workflow_length = len(self.workspace.workflow)
        if resume_index >= workflow_length:
            raise ResumeMismatchError(
                f"Saved run resumes at step {resume_index + 1} but the workflow has {workflow_length} step(s)",
                resume_index=resume_index,
                workflow_length=workflow_length,
            )

        self._bump_epoch()
        self._branches.reset()
        self._comparison_request = None
        self.workspace.mode = record.mode
        run = PipelineRun(
            mode=record.mode,
            initial_input=record.initial_input,
            logs=list(record.logs),
            memory=self._new_memory(record.memory),
            run_id=record.id,
        )
        run.pipeline_files = [
            Artifact(
                name=output_artifact_name(log.step, log.agent_name),
                mime_type=OUTPUT_ARTIFACT_MIME_TYPE,
                content=log.output,
            )
            for log in record.logs
        ]

        history: list[Turn] = []
        for entry in run.memory.for_step(resume_index + 1):
            history.append(Turn.user(entry.user_message))
            history.append(Turn.model(entry.agent_response))
        restored_output = record.logs[resume_index].output if resume_index < len(record.logs) else ""
        if not history and restored_output:
            history.append(Turn.model(restored_output))

        run.active_step_index = resume_index
        run.step_history = history
        run.execution_state = ExecutionState.INTERACTING
        self.run = run
        logger.info("run_resumed", run_id=run.run_id, step=resume_index + 1)
        self._notify()

    def export_outputs(self) -> str:
        """All finalized outputs as one markdown document."""
        return "\n".join(
            f"# {log.agent_name} - Step {log.step}\n\n{log.output}\n\n---\n" for log in self.run.logs
        )

    def export_memory(self) -> str:
        return self.run.memory.format()


__all__ = ["Listener", "PipelineController", "output_artifact_name"]
