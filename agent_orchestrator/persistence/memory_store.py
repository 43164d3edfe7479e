"""In-memory persistence with lock-guarded access."""

from __future__ import annotations

import copy
import threading
from typing import Any

from agent_orchestrator.models.run import RunRecord


class InMemoryPersistence:
    """Dict-backed store for tests and ephemeral sessions.

    Values are deep-copied in and out so callers never share state with
    the store.

    Attributes:
        _state: Key-value entries
        _runs: Saved runs by id
        _lock: Threading lock for thread-safe operations
    """

    def __init__(self) -> None:
        self._state: dict[str, Any] = {}
        self._runs: dict[str, RunRecord] = {}
        self._lock = threading.Lock()

    def save(self, key: str, value: Any) -> None:
        with self._lock:
            self._state[key] = copy.deepcopy(value)

    def load(self, key: str) -> Any | None:
        with self._lock:
            if key not in self._state:
                return None
            return copy.deepcopy(self._state[key])

    def save_run(self, record: RunRecord) -> None:
        with self._lock:
            self._runs[record.id] = record.model_copy(deep=True)

    def load_all_runs(self) -> list[RunRecord]:
        with self._lock:
            runs = [r.model_copy(deep=True) for r in self._runs.values()]
        return sorted(runs, key=lambda r: r.timestamp, reverse=True)

    def delete_run(self, run_id: str) -> bool:
        with self._lock:
            return self._runs.pop(run_id, None) is not None

    def wipe(self) -> None:
        with self._lock:
            self._state.clear()
            self._runs.clear()


__all__ = ["InMemoryPersistence"]
