"""Persistence contract.

Duck typing protocol for key-value plus run-history stores - enables
in-memory substitution in tests. The engine only needs "read back
exactly what was written" and "wipe clears everything".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    from agent_orchestrator.models.run import RunRecord


@runtime_checkable
class PersistenceProtocol(Protocol):
    """Protocol for state stores.

    Methods:
        save: Store a JSON-compatible value under a key
        load: Read a value back (None when absent)
        save_run: Store a completed run
        load_all_runs: All saved runs, newest first
        delete_run: Remove one saved run
        wipe: Remove everything
    """

    def save(self, key: str, value: Any) -> None:
        ...

    def load(self, key: str) -> Any | None:
        ...

    def save_run(self, record: RunRecord) -> None:
        ...

    def load_all_runs(self) -> list[RunRecord]:
        ...

    def delete_run(self, run_id: str) -> bool:
        """Returns True if a run was deleted, False if not found."""
        ...

    def wipe(self) -> None:
        ...


__all__ = ["PersistenceProtocol"]
