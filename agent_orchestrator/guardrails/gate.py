"""Guardrail gate: classify outbound text against the category table.

Pattern: Declarative rule table, linear scan with early exit.
Evaluation is a pure function of (text, settings); nothing here logs
or mutates state.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agent_orchestrator.guardrails.categories import (
    ALL_CATEGORIES,
    HARD_CATEGORIES,
    SOFT_CATEGORIES,
    GuardrailCategory,
    Severity,
    Tier,
)


class GuardrailSettings(BaseModel):
    """Per-category enable switches.

    Categories absent from ``enabled`` are on. A category that cannot be
    disabled is enforced whatever the setting says.
    """

    enabled: dict[str, bool] = Field(default_factory=dict)

    def is_enabled(self, category: GuardrailCategory) -> bool:
        if not category.can_disable:
            return True
        return self.enabled.get(category.id, True)

    def with_category(self, category_id: str, enabled: bool) -> GuardrailSettings:
        """Return a copy with one category switched on or off."""
        return GuardrailSettings(enabled={**self.enabled, category_id: enabled})


class GuardrailVerdict(BaseModel):
    """Result of one evaluation. Never persisted."""

    model_config = ConfigDict(frozen=True)

    blocked: bool
    category_id: str | None = None
    category_name: str | None = None
    reason: str | None = None
    severity: Severity | None = None
    tier: Tier | None = None
    can_override: bool = False
    matched_text: str | None = None

    @classmethod
    def allowed(cls) -> GuardrailVerdict:
        return cls(blocked=False)

    def bypassed_by(self, override: bool) -> bool:
        """True when an explicit user override lifts this block."""
        return self.blocked and override and self.can_override


class GuardrailGate:
    """Evaluate text against hard categories first, then soft ones.

    The first matching pattern of the first enabled matching category
    wins, so any text matching both a hard and a soft category reports
    the hard one.
    """

    def __init__(self, categories: tuple[GuardrailCategory, ...] = ALL_CATEGORIES) -> None:
        # Keep hard before soft regardless of how the table was passed in
        self._categories = tuple(c for c in categories if c.tier == Tier.HARD) + tuple(
            c for c in categories if c.tier == Tier.SOFT
        )

    @property
    def categories(self) -> tuple[GuardrailCategory, ...]:
        return self._categories

    def evaluate(self, text: str, settings: GuardrailSettings | None = None) -> GuardrailVerdict:
        """Classify ``text``.

        Args:
            text: Outbound prompt text.
            settings: Per-category switches; defaults to everything on.

        Returns:
            GuardrailVerdict with ``blocked=False`` when no enabled pattern matches.
        """
        if not text:
            return GuardrailVerdict.allowed()
        settings = settings or GuardrailSettings()

        for category in self._categories:
            if not settings.is_enabled(category):
                continue
            matched = category.first_match(text)
            if matched is None:
                continue
            return GuardrailVerdict(
                blocked=True,
                category_id=category.id,
                category_name=category.name,
                reason=category.description,
                severity=category.severity,
                tier=category.tier,
                can_override=category.can_override,
                matched_text=matched,
            )
        return GuardrailVerdict.allowed()


def default_guardrail_settings() -> GuardrailSettings:
    """All categories enabled."""
    return GuardrailSettings(enabled={c.id: True for c in ALL_CATEGORIES})


def _describe(category: GuardrailCategory) -> dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "severity": category.severity.value,
        "can_disable": category.can_disable,
        "can_override": category.can_override,
        "pattern_count": len(category.patterns),
        "examples": list(category.examples),
    }


def list_categories() -> dict[str, list[dict[str, Any]]]:
    """Catalogue of categories for a settings screen, split by tier."""
    return {
        "hard": [_describe(c) for c in HARD_CATEGORIES],
        "soft": [_describe(c) for c in SOFT_CATEGORIES],
    }


__all__ = [
    "GuardrailGate",
    "GuardrailSettings",
    "GuardrailVerdict",
    "default_guardrail_settings",
    "list_categories",
]
