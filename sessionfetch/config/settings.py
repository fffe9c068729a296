"""Application settings powered by Pydantic BaseSettings."""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sessionfetch.config.models import BackoffKind, OrchestratorConfig, RetryPolicy
from sessionfetch.fetch.constants import DEFAULT_USER_AGENT


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    total_budget_seconds: float = Field(
        default=20.0, validation_alias="SESSIONFETCH_TOTAL_BUDGET_SECONDS"
    )
    attempt_timeout_seconds: float = Field(
        default=15.0, validation_alias="SESSIONFETCH_ATTEMPT_TIMEOUT_SECONDS"
    )
    max_attempts: int = Field(default=3, validation_alias="SESSIONFETCH_MAX_ATTEMPTS")
    backoff: BackoffKind = Field(
        default=BackoffKind.LINEAR, validation_alias="SESSIONFETCH_BACKOFF"
    )
    base_delay_ms: int = Field(
        default=1000, validation_alias="SESSIONFETCH_BASE_DELAY_MS"
    )
    jitter_ms: int = Field(default=0, validation_alias="SESSIONFETCH_JITTER_MS")
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT, validation_alias="SESSIONFETCH_USER_AGENT"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    def to_orchestrator_config(self) -> OrchestratorConfig:
        """Build the orchestrator configuration from these settings."""
        return OrchestratorConfig(
            total_budget_seconds=self.total_budget_seconds,
            attempt_timeout_seconds=self.attempt_timeout_seconds,
            retry_policy=RetryPolicy(
                max_attempts=self.max_attempts,
                backoff=self.backoff,
                base_delay_ms=self.base_delay_ms,
                jitter_ms=self.jitter_ms,
            ),
        )

    @property
    def log_level_value(self) -> int:
        """Get the numeric logging level, defaulting to INFO."""
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
