"""Gateway failure classification.

Maps whatever a completion call raised onto the GatewayError hierarchy:
HTTP status first, then transport exception type, then well-known
substrings of the provider's error message.
"""

from __future__ import annotations

import httpx

from agent_orchestrator.core.exceptions import (
    ContextTooLargeError,
    GatewayError,
    GatewayNetworkError,
    InvalidCredentialError,
    RateLimitError,
    UpstreamServerError,
)


_KEY_LINKS = {
    "gemini": "https://aistudio.google.com/apikey",
    "openai": "https://platform.openai.com/api-keys",
    "anthropic": "https://console.anthropic.com/settings/keys",
    "xai": "https://console.x.ai/",
}

# Substring rules, checked in order after the status code
_MESSAGE_RULES: tuple[tuple[tuple[str, ...], type[GatewayError]], ...] = (
    (("Unauthorized", "invalid_api_key", "invalid api key"), InvalidCredentialError),
    (("rate_limit", "quota", "Too Many Requests"), RateLimitError),
    (("context_length", "too long", "max_tokens"), ContextTooLargeError),
    (("Service Unavailable", "Internal Server Error", "Service"), UpstreamServerError),
    (("network", "Failed to fetch"), GatewayNetworkError),
)


def _class_for_status(status_code: int) -> type[GatewayError] | None:
    if status_code in (401, 403):
        return InvalidCredentialError
    if status_code == 429:
        return RateLimitError
    if status_code == 413:
        return ContextTooLargeError
    if status_code >= 500:
        return UpstreamServerError
    return None


def _class_for_message(message: str) -> type[GatewayError] | None:
    for needles, error_class in _MESSAGE_RULES:
        if any(needle in message for needle in needles):
            return error_class
    return None


def _suggestion(error_class: type[GatewayError], provider: str | None) -> str | None:
    if error_class is InvalidCredentialError and provider:
        link = _KEY_LINKS.get(provider)
        suffix = f" ({link})" if link else ""
        return f"Check your {provider} API key is correct{suffix}."
    return None


def classify_gateway_error(
    exc: BaseException,
    provider: str | None = None,
    model: str | None = None,
    status_code: int | None = None,
) -> GatewayError:
    """Build the typed GatewayError for a failed completion call.

    Args:
        exc: The exception raised by the call.
        provider: Provider the call was routed to.
        model: Model identifier of the call.
        status_code: HTTP status, when not already carried by ``exc``.

    Returns:
        A GatewayError subclass instance chained to ``exc``.
    """
    if isinstance(exc, GatewayError):
        return exc

    if status_code is None and isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code

    message = str(exc) or exc.__class__.__name__
    error_class: type[GatewayError] | None = None
    if status_code is not None:
        error_class = _class_for_status(status_code)
    if error_class is None and isinstance(exc, (httpx.TransportError, TimeoutError, ConnectionError)):
        error_class = GatewayNetworkError
    if error_class is None:
        error_class = _class_for_message(message) or GatewayError

    return error_class(
        message,
        provider=provider,
        model=model,
        status_code=status_code,
        suggestion=_suggestion(error_class, provider),
        cause=exc if isinstance(exc, Exception) else None,
    )


__all__ = ["classify_gateway_error"]
