"""Custom exceptions for the orchestration engine.

All exceptions are namespaced to avoid shadowing Python builtins
(no bare ConnectionError / TimeoutError names).

Two families matter to callers:
- GatewayError and its subclasses: a completion call failed. These are
  recoverable; the engine never retries on its own.
- PreconditionError and its subclasses: the caller asked for something
  the current state does not allow (bad index, wrong state, a turn
  already in flight). These are caller bugs and are raised before any
  state changes.

A guardrail block is not an exception; see guardrails.gate.
"""

from __future__ import annotations


class OrchestratorError(Exception):
    """Base exception for all engine errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# =============================================================================
# Gateway errors
# =============================================================================


class GatewayError(OrchestratorError):
    """Raised when a completion call fails.

    Attributes:
        provider: Provider the call was routed to.
        model: Model identifier of the call.
        status_code: HTTP status code if the failure came from a response.
        suggestion: What the user can do about it.
    """

    kind = "unknown"
    default_suggestion = "Please try again or check the logs for details."

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        model: str | None = None,
        status_code: int | None = None,
        suggestion: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.suggestion = suggestion or self.default_suggestion
        if cause is not None:
            self.__cause__ = cause


class CredentialError(GatewayError):
    """Base for credential problems (absent or rejected key)."""

    kind = "api_key"
    default_suggestion = "Check the API key configured for this provider."


class MissingCredentialError(CredentialError):
    """Raised before any network call when no key is configured."""

    kind = "missing_api_key"
    default_suggestion = "Add an API key for this provider in the workspace settings."


class InvalidCredentialError(CredentialError):
    """Raised when the provider rejects the configured key."""

    kind = "invalid_api_key"


class RateLimitError(GatewayError):
    """Raised when the provider throttles the request."""

    kind = "rate_limit"
    default_suggestion = "Wait a moment and try again, or upgrade your plan."


class ContextTooLargeError(GatewayError):
    """Raised when prompt plus context exceeds the model window."""

    kind = "context"
    default_suggestion = "Try reducing your prompt or the attached context."


class UpstreamServerError(GatewayError):
    """Raised when the provider answers with a server error."""

    kind = "server"
    default_suggestion = "The API service may be experiencing issues. Try again later."


class GatewayNetworkError(GatewayError):
    """Raised when the gateway could not be reached at all."""

    kind = "network"
    default_suggestion = "Check your internet connection and try again."


# =============================================================================
# Precondition errors
# =============================================================================


class PreconditionError(OrchestratorError):
    """Raised when an operation is invalid for the current state."""


class InvalidIndexError(PreconditionError):
    """Raised for out-of-range step, turn or branch references.

    Attributes:
        index: The rejected index.
        valid_range: Human-readable description of the accepted range.
    """

    def __init__(self, message: str, index: int | None = None, valid_range: str | None = None) -> None:
        super().__init__(message)
        self.index = index
        self.valid_range = valid_range


class PipelineStateError(PreconditionError):
    """Raised when an operation is not allowed in the current execution state.

    Attributes:
        state: The execution state at the time of the call.
    """

    def __init__(self, message: str, state: str | None = None) -> None:
        super().__init__(message)
        self.state = state


class StepInProgressError(PreconditionError):
    """Raised when a turn is requested while another is still in flight."""


class ResumeMismatchError(PreconditionError):
    """Raised when a saved run does not fit the current workflow shape.

    Attributes:
        resume_index: Step index the saved run would resume at.
        workflow_length: Number of steps in the current workflow.
    """

    def __init__(self, message: str, resume_index: int, workflow_length: int) -> None:
        super().__init__(message)
        self.resume_index = resume_index
        self.workflow_length = workflow_length


# =============================================================================
# Artifact and assistant errors
# =============================================================================


class ArtifactReadError(OrchestratorError):
    """Raised when a file cannot be turned into an artifact."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ArtifactTooLargeError(ArtifactReadError):
    """Raised when a file exceeds the configured artifact size limit."""

    def __init__(self, message: str, path: str | None = None, size: int = 0, limit: int = 0) -> None:
        super().__init__(message, path)
        self.size = size
        self.limit = limit


class AgentGenerationError(OrchestratorError):
    """Raised when a generated agent configuration cannot be parsed."""

    def __init__(self, message: str, raw_output: str | None = None) -> None:
        super().__init__(message)
        self.raw_output = raw_output


__all__ = [
    "AgentGenerationError",
    "ArtifactReadError",
    "ArtifactTooLargeError",
    "ContextTooLargeError",
    "CredentialError",
    "GatewayError",
    "GatewayNetworkError",
    "InvalidCredentialError",
    "InvalidIndexError",
    "MissingCredentialError",
    "OrchestratorError",
    "PipelineStateError",
    "PreconditionError",
    "RateLimitError",
    "ResumeMismatchError",
    "StepInProgressError",
    "UpstreamServerError",
]
