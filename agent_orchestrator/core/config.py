"""Application configuration using Pydantic Settings.

Environment variables are loaded with the AGENT_ORCHESTRATOR_ prefix.
Provider credentials live here as SecretStr values so they never leak
into logs or reprs.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Service configuration
    service_name: str = "agent-orchestrator"
    environment: str = Field(default="development", description="Runtime environment")
    log_level: str = Field(default="INFO", description="Logging level")

    # Completion gateway
    llm_gateway_url: str = Field(
        default="http://localhost:8080",
        description="OpenAI-compatible completion gateway URL",
    )
    llm_timeout_seconds: float = Field(default=120.0, gt=0, description="Gateway request timeout")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=4096, ge=1)

    # Provider credentials
    gemini_api_key: SecretStr | None = None
    openai_api_key: SecretStr | None = None
    anthropic_api_key: SecretStr | None = None
    xai_api_key: SecretStr | None = None

    # Global memory
    global_memory_enabled: bool = Field(
        default=True,
        description="Inject and record the cross-agent conversation log",
    )
    memory_user_message_limit: int = Field(default=500, ge=1)
    memory_agent_response_limit: int = Field(default=2000, ge=1)

    # Guardrails
    guardrails_enabled: bool = Field(default=True, description="Master guardrail switch")

    # Artifacts and persistence
    max_artifact_bytes: int = Field(default=10 * 1024 * 1024, ge=1)
    data_dir: Path = Field(
        default=Path("data/agent_orchestrator"),
        description="Root directory of the JSON file store",
    )

    model_config = SettingsConfigDict(
        env_prefix="AGENT_ORCHESTRATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton
    """
    return Settings()
