"""Global memory log - the cross-agent, append-only record of turns.

Every successful agent turn leaves one MemoryEntry. The formatted log is
injected into every later call, so it is the main channel through which
later agents see earlier agents' work.

Entries are truncated on write and never edited afterwards. Rollback does
not delete from a log; it builds a filtered copy and the caller swaps the
live reference.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from agent_orchestrator.core.constants import (
    MEMORY_AGENT_RESPONSE_LIMIT,
    MEMORY_BLOCK_FOOTER,
    MEMORY_BLOCK_HEADER,
    MEMORY_USER_MESSAGE_LIMIT,
)


class MemoryEntry(BaseModel):
    """One recorded turn. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="ISO-8601 wall-clock time of the write",
    )
    agent_name: str
    step_number: int = Field(..., ge=1, description="1-based step number")
    user_message: str
    agent_response: str

    @classmethod
    def create(
        cls,
        agent_name: str,
        step_number: int,
        user_message: str,
        agent_response: str,
        user_limit: int = MEMORY_USER_MESSAGE_LIMIT,
        response_limit: int = MEMORY_AGENT_RESPONSE_LIMIT,
    ) -> MemoryEntry:
        """Build an entry, truncating both texts to their limits."""
        return cls(
            agent_name=agent_name,
            step_number=step_number,
            user_message=user_message[:user_limit],
            agent_response=agent_response[:response_limit],
        )

    def render(self) -> str:
        return (
            f"--- [{self.timestamp}] {self.agent_name} (Step {self.step_number}) ---\n"
            f"User: {self.user_message}\n"
            f"Agent: {self.agent_response}\n"
            "---"
        )


class GlobalMemoryLog:
    """Ordered, append-only collection of MemoryEntry objects."""

    def __init__(
        self,
        entries: list[MemoryEntry] | None = None,
        user_limit: int = MEMORY_USER_MESSAGE_LIMIT,
        response_limit: int = MEMORY_AGENT_RESPONSE_LIMIT,
    ) -> None:
        self._entries: list[MemoryEntry] = list(entries or [])
        self.user_limit = user_limit
        self.response_limit = response_limit

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[MemoryEntry]:
        """Snapshot of the entries in insertion order."""
        return list(self._entries)

    def append(self, entry: MemoryEntry) -> MemoryEntry:
        """Add ``entry`` at the tail.

        Entries built elsewhere are re-truncated to this log's limits.
        """
        if len(entry.user_message) > self.user_limit or len(entry.agent_response) > self.response_limit:
            entry = entry.model_copy(
                update={
                    "user_message": entry.user_message[: self.user_limit],
                    "agent_response": entry.agent_response[: self.response_limit],
                }
            )
        self._entries.append(entry)
        return entry

    def record(self, agent_name: str, step_number: int, user_message: str, agent_response: str) -> MemoryEntry:
        """Create and append an entry in one call."""
        return self.append(
            MemoryEntry.create(
                agent_name,
                step_number,
                user_message,
                agent_response,
                user_limit=self.user_limit,
                response_limit=self.response_limit,
            )
        )

    def format(self) -> str:
        """Render all entries as one text block; '' when empty."""
        return "\n\n".join(entry.render() for entry in self._entries)

    def as_block(self) -> str:
        """Formatted log wrapped in the memory delimiters; '' when empty."""
        text = self.format()
        if not text:
            return ""
        return f"{MEMORY_BLOCK_HEADER}\n{text}\n{MEMORY_BLOCK_FOOTER}"

    def filter_up_to(self, step_number: int) -> GlobalMemoryLog:
        """Return a new log holding only entries with ``step_number <= N``.

        This log is left untouched.
        """
        return GlobalMemoryLog(
            [e for e in self._entries if e.step_number <= step_number],
            user_limit=self.user_limit,
            response_limit=self.response_limit,
        )

    def for_step(self, step_number: int) -> list[MemoryEntry]:
        return [e for e in self._entries if e.step_number == step_number]


__all__ = ["GlobalMemoryLog", "MemoryEntry"]
