"""Memory - Global cross-agent conversation log."""

from agent_orchestrator.memory.log import GlobalMemoryLog, MemoryEntry


__all__ = ["GlobalMemoryLog", "MemoryEntry"]
