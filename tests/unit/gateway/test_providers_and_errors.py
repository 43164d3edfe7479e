"""Unit Tests for provider routing and gateway error classification."""

from __future__ import annotations

import httpx
import pytest
from pydantic import SecretStr

from agent_orchestrator.core.exceptions import (
    ContextTooLargeError,
    GatewayError,
    GatewayNetworkError,
    InvalidCredentialError,
    RateLimitError,
    UpstreamServerError,
)
from agent_orchestrator.gateway import classify_gateway_error, has_credential_for_model, provider_for_model
from agent_orchestrator.models import ProviderCredentials


class TestProviderForModel:
    @pytest.mark.parametrize(
        ("model_id", "provider"),
        [
            ("gemini-2.5-flash", "gemini"),
            ("gpt-4o", "openai"),
            ("o1-preview", "openai"),
            ("o3-mini", "openai"),
            ("o4-mini", "openai"),
            ("claude-3-5-haiku-20241022", "anthropic"),
            ("grok-3-mini", "xai"),
            ("mystery-model", "gemini"),
        ],
    )
    def test_routing(self, model_id: str, provider: str) -> None:
        assert provider_for_model(model_id) == provider

    def test_has_credential_for_model(self) -> None:
        creds = ProviderCredentials(openai=SecretStr("sk"), xai=SecretStr("   "))

        assert has_credential_for_model(creds, "gpt-4o") is True
        assert has_credential_for_model(creds, "grok-3-mini") is False
        assert has_credential_for_model(creds, "gemini-2.5-flash") is False


class TestClassifyGatewayError:
    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [
            (401, InvalidCredentialError),
            (403, InvalidCredentialError),
            (429, RateLimitError),
            (413, ContextTooLargeError),
            (500, UpstreamServerError),
            (503, UpstreamServerError),
        ],
    )
    def test_status_codes(self, status_code: int, expected: type[GatewayError]) -> None:
        error = classify_gateway_error(RuntimeError("failed"), "openai", "gpt-4o", status_code=status_code)

        assert type(error) is expected
        assert error.status_code == status_code
        assert error.provider == "openai"
        assert error.model == "gpt-4o"

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("Error: invalid_api_key provided", InvalidCredentialError),
            ("You exceeded your current quota", RateLimitError),
            ("This model's maximum context_length is 8192 tokens", ContextTooLargeError),
            ("Service temporarily overloaded", UpstreamServerError),
            ("something odd happened", GatewayError),
        ],
    )
    def test_message_substrings(self, message: str, expected: type[GatewayError]) -> None:
        assert type(classify_gateway_error(RuntimeError(message))) is expected

    def test_status_code_beats_message(self) -> None:
        error = classify_gateway_error(RuntimeError("quota exceeded"), status_code=401)

        assert isinstance(error, InvalidCredentialError)

    def test_http_status_error_carries_its_status(self) -> None:
        request = httpx.Request("POST", "http://gateway.test/v1/chat/completions")
        response = httpx.Response(429, request=request)
        exc = httpx.HTTPStatusError("Too Many Requests", request=request, response=response)

        error = classify_gateway_error(exc, "gemini", "gemini-2.5-flash")

        assert isinstance(error, RateLimitError)
        assert error.status_code == 429
        assert error.__cause__ is exc

    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
            TimeoutError("timed out"),
        ],
    )
    def test_transport_failures_are_network_errors(self, exc: Exception) -> None:
        assert isinstance(classify_gateway_error(exc), GatewayNetworkError)

    def test_already_classified_error_is_returned_unchanged(self) -> None:
        original = RateLimitError("slow down")

        assert classify_gateway_error(original) is original

    def test_invalid_key_suggestion_names_provider(self) -> None:
        error = classify_gateway_error(RuntimeError("Unauthorized"), "anthropic", "claude-3-5-haiku-20241022")

        assert error.kind == "invalid_api_key"
        assert "anthropic" in error.suggestion
        assert "console.anthropic.com" in error.suggestion

    def test_every_kind_has_a_suggestion(self) -> None:
        error = classify_gateway_error(RuntimeError("odd"))

        assert error.kind == "unknown"
        assert error.suggestion
