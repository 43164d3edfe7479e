"""Agent Orchestrator - multi-agent pipeline orchestration engine.

Chains AI-model agents into a pipeline with shared global memory,
guardrail gating, rollback, conversation branching and multi-model
comparison.
"""

__version__ = "0.1.0"
