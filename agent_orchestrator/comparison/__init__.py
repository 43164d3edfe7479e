"""Comparison - Concurrent multi-model fan-out."""

from agent_orchestrator.comparison.runner import (
    ComparisonResult,
    ComparisonRunner,
    ComparisonStatus,
    ProgressStatus,
)


__all__ = ["ComparisonResult", "ComparisonRunner", "ComparisonStatus", "ProgressStatus"]
