"""JSON file persistence.

Layout under ``data_dir``:
    state/<key>.json   key-value entries
    runs/<run_id>.json saved runs
"""

from __future__ import annotations

import json
import re
import shutil
import threading
from pathlib import Path
from typing import Any

from agent_orchestrator.core.logging import get_logger
from agent_orchestrator.models.run import RunRecord


logger = get_logger(__name__)

_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


def _file_name(name: str) -> str:
    return _SAFE_NAME.sub("_", name) + ".json"


class JSONFilePersistence:
    """File-backed store; one JSON document per key and per run."""

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)
        self.state_dir = self.data_dir / "state"
        self.runs_dir = self.data_dir / "runs"
        self._lock = threading.Lock()
        self._ensure_dirs()

    def _ensure_dirs(self) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self.runs_dir.mkdir(parents=True, exist_ok=True)

    def save(self, key: str, value: Any) -> None:
        path = self.state_dir / _file_name(key)
        with self._lock:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2)

    def load(self, key: str) -> Any | None:
        path = self.state_dir / _file_name(key)
        with self._lock:
            if not path.exists():
                return None
            with open(path, encoding="utf-8") as f:
                return json.load(f)

    def save_run(self, record: RunRecord) -> None:
        path = self.runs_dir / _file_name(record.id)
        with self._lock:
            path.write_text(record.model_dump_json(indent=2), encoding="utf-8")

    def load_all_runs(self) -> list[RunRecord]:
        runs: list[RunRecord] = []
        with self._lock:
            for path in self.runs_dir.glob("*.json"):
                runs.append(RunRecord.model_validate_json(path.read_text(encoding="utf-8")))
        return sorted(runs, key=lambda r: r.timestamp, reverse=True)

    def delete_run(self, run_id: str) -> bool:
        path = self.runs_dir / _file_name(run_id)
        with self._lock:
            if not path.exists():
                return False
            path.unlink()
            return True

    def wipe(self) -> None:
        with self._lock:
            shutil.rmtree(self.data_dir, ignore_errors=True)
            self._ensure_dirs()
        logger.info("persistence_wiped", data_dir=str(self.data_dir))


__all__ = ["JSONFilePersistence"]
