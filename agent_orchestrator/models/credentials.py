"""Provider credentials."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, SecretStr


if TYPE_CHECKING:
    from agent_orchestrator.core.config import Settings


PROVIDERS: tuple[str, ...] = ("gemini", "openai", "anthropic", "xai")


class ProviderCredentials(BaseModel):
    """API keys per provider. Blank keys count as absent."""

    gemini: SecretStr | None = None
    openai: SecretStr | None = None
    anthropic: SecretStr | None = None
    xai: SecretStr | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> ProviderCredentials:
        """Build credentials from the *_api_key settings fields."""
        return cls(
            gemini=settings.gemini_api_key,
            openai=settings.openai_api_key,
            anthropic=settings.anthropic_api_key,
            xai=settings.xai_api_key,
        )

    def for_provider(self, provider: str) -> str | None:
        """Return the stripped key for ``provider``, or None if absent."""
        secret = getattr(self, provider, None)
        if secret is None:
            return None
        value = secret.get_secret_value().strip()
        return value or None

    def has_any(self) -> bool:
        """True when at least one provider has a usable key."""
        return any(self.for_provider(p) for p in PROVIDERS)

    def configured_providers(self) -> list[str]:
        return [p for p in PROVIDERS if self.for_provider(p)]

    def reveal(self) -> dict[str, str | None]:
        """Plain-text view for persistence. Never log this."""
        return {p: self.for_provider(p) for p in PROVIDERS}


__all__ = ["PROVIDERS", "ProviderCredentials"]
