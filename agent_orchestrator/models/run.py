"""Pipeline run state.

Implements:
- ExecutionState / PipelineMode / StepStatus enums
- LogEntry: one finalized step
- PipelineRun: the live, mutable execution context owned by the controller
- RunRecord: the persisted snapshot of a completed run
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from agent_orchestrator.memory.log import GlobalMemoryLog, MemoryEntry
from agent_orchestrator.models.agents import Artifact
from agent_orchestrator.models.turns import Turn, latest_output


if TYPE_CHECKING:
    from agent_orchestrator.comparison.runner import ComparisonResult
    from agent_orchestrator.guardrails.gate import GuardrailVerdict


class ExecutionState(str, Enum):
    """Top-level pipeline state."""

    IDLE = "idle"
    RUNNING = "running"
    CHOOSING_NEXT = "choosing_next"
    INTERACTING = "interacting"
    COMPLETE = "complete"


class PipelineMode(str, Enum):
    """LINEAR walks a pre-authored workflow; INTERACTIVE builds it step by step."""

    LINEAR = "linear"
    INTERACTIVE = "interactive"


class StepStatus(str, Enum):
    """Status recorded on a step's log entry."""

    COMPLETED = "completed"


class LogEntry(BaseModel):
    """Finalized output of one step. ``step`` is 1-based."""

    step: int = Field(..., ge=1)
    agent_name: str
    status: StepStatus = StepStatus.COMPLETED
    output: str


# =============================================================================
# Live run state
# =============================================================================


@dataclass
class PipelineRun:
    """Mutable execution context for one pipeline session.

    Invariants:
        - ``logs`` and ``pipeline_files`` stay index-aligned.
        - In linear mode ``len(logs)`` never exceeds ``active_step_index``
          except after the last step completes.
        - ``step_history`` belongs to the active step only.
    """

    mode: PipelineMode = PipelineMode.LINEAR
    execution_state: ExecutionState = ExecutionState.IDLE
    active_step_index: int | None = None
    logs: list[LogEntry] = field(default_factory=list)
    step_history: list[Turn] = field(default_factory=list)
    pipeline_files: list[Artifact] = field(default_factory=list)
    initial_input: str = ""
    chat_input: str = ""
    pending_attachments: list[Artifact] = field(default_factory=list)
    memory: GlobalMemoryLog = field(default_factory=GlobalMemoryLog)
    is_processing: bool = False
    guardrail_warning: GuardrailVerdict | None = None
    last_error: Exception | None = None
    pending_comparison: list[ComparisonResult] | None = None
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def current_output(self) -> str:
        """Latest model output of the active step, '' when none."""
        return latest_output(self.step_history)

    def last_finalized_output(self) -> str:
        """Output of the last finalized step, falling back to the initial input."""
        if self.logs:
            return self.logs[-1].output
        return self.initial_input


# =============================================================================
# Persisted run
# =============================================================================


def _run_name(initial_input: str, when: datetime) -> str:
    return f"Run {when.strftime('%H:%M:%S')} - {initial_input[:30]}..."


class RunRecord(BaseModel):
    """A saved run, as listed in run history."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: float = Field(default_factory=time.time, description="Unix time of the save")
    name: str = ""
    mode: PipelineMode = PipelineMode.LINEAR
    logs: list[LogEntry] = Field(default_factory=list)
    memory: list[MemoryEntry] = Field(default_factory=list)
    initial_input: str = ""

    @classmethod
    def from_run(cls, run: PipelineRun) -> RunRecord:
        now = time.time()
        return cls(
            id=run.run_id,
            timestamp=now,
            name=_run_name(run.initial_input, datetime.fromtimestamp(now)),
            mode=run.mode,
            logs=list(run.logs),
            memory=run.memory.entries,
            initial_input=run.initial_input,
        )


__all__ = [
    "ExecutionState",
    "LogEntry",
    "PipelineMode",
    "PipelineRun",
    "RunRecord",
    "StepStatus",
]
