"""Domain models - agents, turns, credentials, run state and workspace."""

from agent_orchestrator.models.agents import Agent, Artifact, WorkflowStep, merge_artifacts
from agent_orchestrator.models.credentials import PROVIDERS, ProviderCredentials
from agent_orchestrator.models.run import (
    ExecutionState,
    LogEntry,
    PipelineMode,
    PipelineRun,
    RunRecord,
    StepStatus,
)
from agent_orchestrator.models.turns import Turn, TurnRole, latest_output
from agent_orchestrator.models.workspace import Workspace


__all__ = [
    "PROVIDERS",
    "Agent",
    "Artifact",
    "ExecutionState",
    "LogEntry",
    "PipelineMode",
    "PipelineRun",
    "ProviderCredentials",
    "RunRecord",
    "StepStatus",
    "Turn",
    "TurnRole",
    "WorkflowStep",
    "Workspace",
    "latest_output",
    "merge_artifacts",
]
