"""Workspace repository - maps a Workspace onto key-value entries."""

from __future__ import annotations

from pydantic import TypeAdapter

from agent_orchestrator.guardrails.gate import GuardrailSettings
from agent_orchestrator.models.agents import Agent, WorkflowStep
from agent_orchestrator.models.credentials import ProviderCredentials
from agent_orchestrator.models.run import PipelineMode
from agent_orchestrator.models.workspace import Workspace
from agent_orchestrator.persistence.protocols import PersistenceProtocol


AGENTS_KEY = "agents"
WORKFLOW_KEY = "workflow"
MODE_KEY = "mode"
GUARDRAILS_KEY = "guardrails_enabled"
GUARDRAIL_SETTINGS_KEY = "guardrail_settings"
CREDENTIALS_KEY = "credentials"

_agents_adapter = TypeAdapter(list[Agent])
_workflow_adapter = TypeAdapter(list[WorkflowStep])


class WorkspaceRepository:
    """Save and restore the user's workspace."""

    def __init__(self, store: PersistenceProtocol) -> None:
        self._store = store

    def save_workspace(self, workspace: Workspace) -> None:
        self._store.save(AGENTS_KEY, _agents_adapter.dump_python(workspace.agents, mode="json"))
        self._store.save(WORKFLOW_KEY, _workflow_adapter.dump_python(workspace.workflow, mode="json"))
        self._store.save(MODE_KEY, workspace.mode.value)
        self._store.save(GUARDRAILS_KEY, workspace.guardrails_enabled)
        self._store.save(GUARDRAIL_SETTINGS_KEY, workspace.guardrail_settings.model_dump(mode="json"))
        self._store.save(CREDENTIALS_KEY, workspace.credentials.reveal())

    def load_workspace(self) -> Workspace:
        """Restore the saved workspace; missing entries fall back to defaults."""
        workspace = Workspace()

        agents = self._store.load(AGENTS_KEY)
        if agents is not None:
            workspace.agents = _agents_adapter.validate_python(agents)

        workflow = self._store.load(WORKFLOW_KEY)
        if workflow is not None:
            workspace.workflow = _workflow_adapter.validate_python(workflow)

        mode = self._store.load(MODE_KEY)
        if mode is not None:
            workspace.mode = PipelineMode(mode)

        guardrails_enabled = self._store.load(GUARDRAILS_KEY)
        if guardrails_enabled is not None:
            workspace.guardrails_enabled = bool(guardrails_enabled)

        guardrail_settings = self._store.load(GUARDRAIL_SETTINGS_KEY)
        if guardrail_settings is not None:
            workspace.guardrail_settings = GuardrailSettings.model_validate(guardrail_settings)

        credentials = self._store.load(CREDENTIALS_KEY)
        if credentials is not None:
            workspace.credentials = ProviderCredentials.model_validate(credentials)

        return workspace


__all__ = ["WorkspaceRepository"]
