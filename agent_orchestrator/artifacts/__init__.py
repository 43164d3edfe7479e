"""Artifacts - File to Artifact conversion."""

from agent_orchestrator.artifacts.reader import ArtifactReader, guess_mime_type


__all__ = ["ArtifactReader", "guess_mime_type"]
