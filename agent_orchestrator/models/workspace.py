"""User configuration: agents, workflow, credentials and switches."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from agent_orchestrator.core.exceptions import PipelineStateError
from agent_orchestrator.guardrails.gate import GuardrailSettings
from agent_orchestrator.models.agents import Agent, Artifact, WorkflowStep
from agent_orchestrator.models.credentials import ProviderCredentials
from agent_orchestrator.models.run import PipelineMode


class Workspace(BaseModel):
    """Everything the user configures before (and between) runs.

    Agents are mutable at any time. Deleting an agent removes every
    workflow step that references it.
    """

    agents: list[Agent] = Field(default_factory=list)
    workflow: list[WorkflowStep] = Field(default_factory=list)
    credentials: ProviderCredentials = Field(default_factory=ProviderCredentials)
    mode: PipelineMode = PipelineMode.LINEAR
    guardrails_enabled: bool = True
    guardrail_settings: GuardrailSettings = Field(default_factory=GuardrailSettings)
    global_memory_enabled: bool = True

    # -------------------------------------------------------------------------
    # Agents
    # -------------------------------------------------------------------------

    def add_agent(self, agent: Agent) -> Agent:
        self.agents.append(agent)
        return agent

    def get_agent(self, agent_id: str) -> Agent:
        for agent in self.agents:
            if agent.id == agent_id:
                return agent
        raise PipelineStateError(f"Unknown agent: {agent_id}")

    def find_agent(self, agent_id: str) -> Agent | None:
        return next((a for a in self.agents if a.id == agent_id), None)

    def update_agent(self, agent_id: str, **changes: Any) -> Agent:
        """Replace fields of an agent; returns the updated agent."""
        current = self.get_agent(agent_id)
        updated = current.model_copy(update=changes)
        self.agents = [updated if a.id == agent_id else a for a in self.agents]
        return updated

    def delete_agent(self, agent_id: str) -> None:
        """Remove an agent and every workflow step that references it."""
        self.get_agent(agent_id)
        self.agents = [a for a in self.agents if a.id != agent_id]
        self.workflow = [s for s in self.workflow if s.agent_id != agent_id]

    # -------------------------------------------------------------------------
    # Workflow
    # -------------------------------------------------------------------------

    def add_step(self, agent_id: str, task_prompt: str = "") -> WorkflowStep:
        self.get_agent(agent_id)
        step = WorkflowStep(agent_id=agent_id, task_prompt=task_prompt)
        self.workflow.append(step)
        return step

    def get_step(self, step_id: str) -> WorkflowStep:
        for step in self.workflow:
            if step.id == step_id:
                return step
        raise PipelineStateError(f"Unknown workflow step: {step_id}")

    def remove_step(self, step_id: str) -> None:
        self.get_step(step_id)
        self.workflow = [s for s in self.workflow if s.id != step_id]

    # -------------------------------------------------------------------------
    # Artifacts
    # -------------------------------------------------------------------------

    def attach_knowledge(self, agent_id: str, artifact: Artifact) -> None:
        agent = self.get_agent(agent_id)
        agent.knowledge.append(artifact)

    def attach_step_file(self, step_id: str, artifact: Artifact) -> None:
        step = self.get_step(step_id)
        step.files.append(artifact)

    def remove_artifact(self, owner_id: str, name: str) -> None:
        """Remove an artifact by name from an agent or a workflow step."""
        agent = self.find_agent(owner_id)
        if agent is not None:
            agent.knowledge = [a for a in agent.knowledge if a.name != name]
            return
        step = self.get_step(owner_id)
        step.files = [a for a in step.files if a.name != name]


__all__ = ["Workspace"]
