"""Configuration for retries, orchestration and the environment."""

from sessionfetch.config.models import BackoffKind, OrchestratorConfig, RetryPolicy
from sessionfetch.config.settings import AppSettings, get_settings


__all__ = [
    "AppSettings",
    "BackoffKind",
    "OrchestratorConfig",
    "RetryPolicy",
    "get_settings",
]
