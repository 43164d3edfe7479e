"""Execution - Single agent turn orchestration."""

from agent_orchestrator.execution.executor import (
    BlockedResult,
    StepExecutor,
    TurnRequest,
    TurnResult,
    build_context,
    compose_prompt,
)


__all__ = [
    "BlockedResult",
    "StepExecutor",
    "TurnRequest",
    "TurnResult",
    "build_context",
    "compose_prompt",
]
