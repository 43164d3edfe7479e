"""Pipeline - Top-level state machine and helper completions."""

from agent_orchestrator.pipeline.assistants import generate_agent, summarize_run
from agent_orchestrator.pipeline.controller import PipelineController, output_artifact_name


__all__ = ["PipelineController", "generate_agent", "output_artifact_name", "summarize_run"]
