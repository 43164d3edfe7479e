"""Core module - Configuration, logging, exceptions and shared constants.

Exports:
    - Settings, get_settings: Pydantic Settings configuration
    - configure_logging, get_logger: Structured logging (structlog)
    - Exception classes: OrchestratorError, GatewayError, PreconditionError, etc.
"""

from agent_orchestrator.core.config import Settings, get_settings
from agent_orchestrator.core.exceptions import (
    AgentGenerationError,
    ArtifactReadError,
    ArtifactTooLargeError,
    ContextTooLargeError,
    CredentialError,
    GatewayError,
    GatewayNetworkError,
    InvalidCredentialError,
    InvalidIndexError,
    MissingCredentialError,
    OrchestratorError,
    PipelineStateError,
    PreconditionError,
    RateLimitError,
    ResumeMismatchError,
    StepInProgressError,
    UpstreamServerError,
)
from agent_orchestrator.core.logging import configure_logging, get_logger


__all__ = [
    # Exceptions
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
    # Configuration
    "Settings",
    "StepInProgressError",
    "UpstreamServerError",
    # Logging
    "configure_logging",
    "get_logger",
    "get_settings",
]
