"""Guardrails - Content filter applied to every outbound prompt."""

from agent_orchestrator.guardrails.categories import (
    ALL_CATEGORIES,
    HARD_CATEGORIES,
    SAFETY_INSTRUCTIONS,
    SOFT_CATEGORIES,
    GuardrailCategory,
    Severity,
    Tier,
)
from agent_orchestrator.guardrails.gate import (
    GuardrailGate,
    GuardrailSettings,
    GuardrailVerdict,
    default_guardrail_settings,
    list_categories,
)


__all__ = [
    "ALL_CATEGORIES",
    "HARD_CATEGORIES",
    "SAFETY_INSTRUCTIONS",
    "SOFT_CATEGORIES",
    "GuardrailCategory",
    "GuardrailGate",
    "GuardrailSettings",
    "GuardrailVerdict",
    "Severity",
    "Tier",
    "default_guardrail_settings",
    "list_categories",
]
