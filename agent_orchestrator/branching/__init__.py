"""Branching - Forkable chat history for the active step."""

from agent_orchestrator.branching.manager import Branch, BranchManager


__all__ = ["Branch", "BranchManager"]
