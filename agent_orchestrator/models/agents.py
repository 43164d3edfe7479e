"""Agent and workflow step models.

Implements:
- Artifact: a named piece of context (knowledge file, attachment, step output)
- Agent: system prompt + model + private knowledge
- WorkflowStep: one position in the pipeline, bound to one agent
- merge_artifacts: name-deduplicated context assembly
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field

from agent_orchestrator.core.constants import is_binary_mime_type


# =============================================================================
# Artifact
# =============================================================================


class Artifact(BaseModel):
    """A named piece of context handed to a model.

    Content is UTF-8 text, or base64 for binary types (PDF, images).
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="File name, unique within a context")
    mime_type: str = Field(default="text/plain", description="MIME type of the content")
    content: str = Field(default="", description="Text, or base64 for binary types")

    @property
    def is_binary(self) -> bool:
        """True when the content is base64-encoded binary data."""
        return is_binary_mime_type(self.mime_type)


def merge_artifacts(*groups: list[Artifact]) -> list[Artifact]:
    """Merge artifact groups in priority order, deduplicating by name.

    The first occurrence of a name wins, so earlier groups shadow later ones.

    Args:
        *groups: Artifact lists, highest priority first.

    Returns:
        A new list with one artifact per distinct name.
    """
    merged: list[Artifact] = []
    seen: set[str] = set()
    for group in groups:
        for artifact in group:
            if artifact.name in seen:
                continue
            seen.add(artifact.name)
            merged.append(artifact)
    return merged


# =============================================================================
# Agent
# =============================================================================


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class Agent(BaseModel):
    """A named configuration invoked for one or more pipeline steps.

    Attributes:
        id: Unique agent identifier.
        name: Display name; also used to attribute memory entries.
        model: Model identifier, which also selects the provider.
        prompt: System prompt text.
        knowledge: Private knowledge artifacts, in order.
    """

    id: str = Field(default_factory=_new_id)
    name: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    prompt: str = Field(default="You are a helpful assistant.")
    knowledge: list[Artifact] = Field(default_factory=list)


# =============================================================================
# Workflow Step
# =============================================================================


class WorkflowStep(BaseModel):
    """One position in the pipeline sequence.

    Attributes:
        id: Unique step identifier.
        agent_id: The agent that runs this step.
        task_prompt: Task instruction added to the opening turn.
        files: Step-local artifacts.
    """

    id: str = Field(default_factory=lambda: f"step-{_new_id()}")
    agent_id: str
    task_prompt: str = ""
    files: list[Artifact] = Field(default_factory=list)


__all__ = [
    "Agent",
    "Artifact",
    "WorkflowStep",
    "merge_artifacts",
]
