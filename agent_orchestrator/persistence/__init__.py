"""Persistence - Key-value and run-history stores."""

from agent_orchestrator.persistence.json_store import JSONFilePersistence
from agent_orchestrator.persistence.memory_store import InMemoryPersistence
from agent_orchestrator.persistence.protocols import PersistenceProtocol
from agent_orchestrator.persistence.repository import WorkspaceRepository


__all__ = [
    "InMemoryPersistence",
    "JSONFilePersistence",
    "PersistenceProtocol",
    "WorkspaceRepository",
]
