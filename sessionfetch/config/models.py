"""Configuration models for retries and orchestration."""

import random
from enum import Enum
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sessionfetch.fetch.constants import DEFAULT_MAX_RESPONSE_SIZE_BYTES
from sessionfetch.fetch.models import Failure


class BackoffKind(str, Enum):
    """Shape of the wait between retries of one strategy.

    - FIXED: base_delay_ms every time
    - LINEAR: attempt * base_delay_ms
    - JITTERED_LINEAR: attempt * base_delay_ms + random(0, jitter_ms)
    """

    FIXED = "fixed"
    LINEAR = "linear"
    JITTERED_LINEAR = "jittered_linear"


class RetryPolicy(BaseModel):
    """Configuration for retry behavior within one strategy.

    Delays never decrease as the attempt number grows. Jitter is capped at
    base_delay_ms so a jittered wait can never exceed the next one.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: Annotated[int, Field(ge=1, le=10)] = 3
    backoff: BackoffKind = BackoffKind.LINEAR
    base_delay_ms: Annotated[int, Field(ge=0, le=60000)] = 1000
    jitter_ms: Annotated[int, Field(ge=0, le=60000)] = 0
    max_delay_ms: Annotated[int, Field(ge=0, le=300000)] = 30000

    @model_validator(mode="after")
    def validate_jitter(self) -> Self:
        """Keep jittered delays monotonic."""
        if self.jitter_ms > self.base_delay_ms:
            msg = (
                f"jitter_ms ({self.jitter_ms}) must not exceed "
                f"base_delay_ms ({self.base_delay_ms})"
            )
            raise ValueError(msg)
        return self

    def should_retry(self, failure: Failure, attempt: int) -> bool:
        """Determine if a failed attempt should be followed by another.

        Args:
            failure: The failure of the attempt.
            attempt: Attempt number that just failed (1-indexed).

        Returns:
            True if another attempt is allowed.
        """
        if attempt >= self.max_attempts:
            return False
        return failure.is_retryable

    def get_delay_ms(self, attempt: int) -> int:
        """Calculate the wait after a failed attempt.

        Args:
            attempt: Attempt number that just failed (1-indexed).

        Returns:
            Delay in milliseconds.
        """
        if self.backoff == BackoffKind.FIXED:
            delay = float(self.base_delay_ms)
        else:
            delay = float(attempt * self.base_delay_ms)

        if self.backoff == BackoffKind.JITTERED_LINEAR and self.jitter_ms:
            delay += self.jitter_ms * random.random()  # noqa: S311

        return int(min(delay, self.max_delay_ms))


class OrchestratorConfig(BaseModel):
    """Configuration for one escalation orchestrator.

    Passed in at construction so independent orchestrators can run side by
    side with different policies.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    total_budget_seconds: Annotated[float, Field(gt=0.0, le=600.0)] = 20.0
    attempt_timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = 15.0
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    bootstrap_strategy: str | None = Field(
        default=None,
        description="Strategy used against the base URL; defaults to the first",
    )
    send_referer: bool = Field(
        default=True,
        description="Add Referer: <base URL> to a successfully bootstrapped session",
    )
    bootstrap_settle_ms: Annotated[int, Field(ge=0, le=60000)] = 0
    max_response_size_bytes: Annotated[
        int, Field(ge=1024, le=100 * 1024 * 1024)
    ] = DEFAULT_MAX_RESPONSE_SIZE_BYTES
