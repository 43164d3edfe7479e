"""Model id to provider routing."""

from __future__ import annotations

from agent_orchestrator.models.credentials import ProviderCredentials


DEFAULT_PROVIDER = "gemini"

# Prefix table, checked in order
_PREFIXES: tuple[tuple[str, str], ...] = (
    ("gemini-", "gemini"),
    ("gpt-", "openai"),
    ("o1", "openai"),
    ("o3", "openai"),
    ("o4", "openai"),
    ("claude-", "anthropic"),
    ("grok-", "xai"),
)


def provider_for_model(model_id: str) -> str:
    """Return the provider serving ``model_id``; unknown ids go to gemini."""
    for prefix, provider in _PREFIXES:
        if model_id.startswith(prefix):
            return provider
    return DEFAULT_PROVIDER


def has_credential_for_model(credentials: ProviderCredentials, model_id: str) -> bool:
    return credentials.for_provider(provider_for_model(model_id)) is not None


__all__ = ["DEFAULT_PROVIDER", "has_credential_for_model", "provider_for_model"]
