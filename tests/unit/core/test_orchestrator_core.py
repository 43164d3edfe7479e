"""Unit tests for core configuration, logging and exceptions."""

import os
from unittest.mock import patch

import pytest

import agent_orchestrator.core.logging as logging_module
from agent_orchestrator.core.config import Settings, get_settings
from agent_orchestrator.core.exceptions import (
    CredentialError,
    GatewayError,
    InvalidCredentialError,
    InvalidIndexError,
    MissingCredentialError,
    OrchestratorError,
    PipelineStateError,
    PreconditionError,
    RateLimitError,
    ResumeMismatchError,
    StepInProgressError,
)
from agent_orchestrator.core.logging import add_service_context, configure_logging, get_logger
from agent_orchestrator.models import ProviderCredentials


class TestSettings:
    """Tests for the Settings class."""

    def test_field_defaults(self) -> None:
        fields = Settings.model_fields
        assert fields["llm_gateway_url"].default == "http://localhost:8080"
        assert fields["memory_user_message_limit"].default == 500
        assert fields["memory_agent_response_limit"].default == 2000
        assert fields["guardrails_enabled"].default is True
        assert fields["global_memory_enabled"].default is True
        assert fields["environment"].default == "development"

    def test_settings_from_environment(self) -> None:
        env_vars = {
            "AGENT_ORCHESTRATOR_LLM_GATEWAY_URL": "http://gateway.production:8000",
            "AGENT_ORCHESTRATOR_LOG_LEVEL": "DEBUG",
            "AGENT_ORCHESTRATOR_OPENAI_API_KEY": "sk-env",
            "AGENT_ORCHESTRATOR_GUARDRAILS_ENABLED": "false",
        }

        with patch.dict(os.environ, env_vars, clear=False):
            settings = Settings()

        assert settings.llm_gateway_url == "http://gateway.production:8000"
        assert settings.log_level == "DEBUG"
        assert settings.openai_api_key.get_secret_value() == "sk-env"
        assert settings.guardrails_enabled is False

    def test_unprefixed_variables_are_ignored(self) -> None:
        with patch.dict(os.environ, {"OPENAI_API_KEY": "wrong"}, clear=False):
            settings = Settings()

        assert settings.openai_api_key is None

    def test_api_keys_are_hidden_in_repr(self) -> None:
        settings = Settings(gemini_api_key="super-secret")

        assert "super-secret" not in repr(settings)

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_credentials_from_settings(self) -> None:
        settings = Settings(gemini_api_key="g", xai_api_key="  ")

        creds = ProviderCredentials.from_settings(settings)

        assert creds.for_provider("gemini") == "g"
        assert creds.for_provider("xai") is None
        assert creds.configured_providers() == ["gemini"]
        assert creds.has_any() is True

    def test_empty_credentials(self) -> None:
        assert ProviderCredentials().has_any() is False


class TestLogging:
    """Tests for structlog configuration."""

    @pytest.mark.parametrize("environment", ["development", "production"])
    def test_configure_logging(self, monkeypatch: pytest.MonkeyPatch, environment: str) -> None:
        monkeypatch.setattr(logging_module, "_configured", False)
        with patch("agent_orchestrator.core.logging.get_settings") as mock_settings:
            mock_settings.return_value.environment = environment
            mock_settings.return_value.log_level = "INFO"
            with patch("agent_orchestrator.core.logging.structlog.configure") as mock_configure:
                configure_logging()

        mock_configure.assert_called_once()
        renderer = mock_configure.call_args.kwargs["processors"][-1]
        if environment == "production":
            assert type(renderer).__name__ == "JSONRenderer"
        else:
            assert type(renderer).__name__ == "ConsoleRenderer"

    def test_configure_logging_is_idempotent(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(logging_module, "_configured", True)
        with patch("agent_orchestrator.core.logging.structlog.configure") as mock_configure:
            configure_logging()

        mock_configure.assert_not_called()

    def test_add_service_context(self) -> None:
        with patch("agent_orchestrator.core.logging.get_settings") as mock_settings:
            mock_settings.return_value.service_name = "agent-orchestrator"
            mock_settings.return_value.environment = "testing"

            event = add_service_context(None, "info", {"event": "step_finalized"})

        assert event == {"event": "step_finalized", "service": "agent-orchestrator", "environment": "testing"}

    def test_get_logger(self) -> None:
        assert get_logger(__name__) is not None


class TestExceptionHierarchy:
    """Tests for the exception tree."""

    def test_everything_derives_from_orchestrator_error(self) -> None:
        for exc_type in (GatewayError, PreconditionError, MissingCredentialError, StepInProgressError):
            assert issubclass(exc_type, OrchestratorError)

    def test_credential_errors(self) -> None:
        assert issubclass(MissingCredentialError, CredentialError)
        assert issubclass(InvalidCredentialError, CredentialError)
        assert issubclass(CredentialError, GatewayError)

    def test_precondition_errors(self) -> None:
        for exc_type in (InvalidIndexError, PipelineStateError, StepInProgressError, ResumeMismatchError):
            assert issubclass(exc_type, PreconditionError)
            assert not issubclass(exc_type, GatewayError)

    def test_builtin_names_are_not_shadowed(self) -> None:
        assert not issubclass(GatewayError, ConnectionError)
        assert not issubclass(GatewayError, TimeoutError)

    def test_gateway_error_defaults(self) -> None:
        cause = ValueError("raw")
        error = RateLimitError("slow down", provider="openai", model="gpt-4o", status_code=429, cause=cause)

        assert error.kind == "rate_limit"
        assert error.suggestion == RateLimitError.default_suggestion
        assert error.__cause__ is cause
        assert str(error) == "slow down"

    def test_invalid_index_carries_range(self) -> None:
        error = InvalidIndexError("bad", index=7, valid_range="0..2")

        assert (error.index, error.valid_range) == (7, "0..2")
