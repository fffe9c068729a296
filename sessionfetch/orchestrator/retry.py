"""Bounded retries of a single strategy under the request deadline."""

import asyncio
import time

import structlog
from pydantic import BaseModel, ConfigDict, Field

from sessionfetch.config.models import RetryPolicy
from sessionfetch.fetch.executor import StrategyExecutor
from sessionfetch.fetch.models import (
    AttemptResult,
    Content,
    Failure,
    FailureKind,
    SessionState,
    StrategyError,
)
from sessionfetch.fetch.redact import redact_url_credentials
from sessionfetch.orchestrator.deadline import Deadline
from sessionfetch.orchestrator.metrics import RetrievalMetrics


logger = structlog.get_logger()


class RetryOutcome(BaseModel):
    """Result of running one strategy with retries.

    Exactly one of `content` and `failure` is set.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    content: Content | None = None
    failure: Failure | None = None
    attempts: tuple[AttemptResult, ...] = Field(default=())

    @property
    def is_success(self) -> bool:
        """Check if the strategy produced content."""
        return self.content is not None


def _deadline_failure(url: str, deadline: Deadline, detail: str) -> Failure:
    return Failure(
        kind=FailureKind.DEADLINE_EXCEEDED,
        message=(
            f"Deadline of {deadline.budget_seconds:.2f}s exceeded {detail}"
        ),
        url=url,
    )


class RetryController:
    """Run one strategy up to `max_attempts` times.

    Every attempt is bounded by the time left on the request deadline and
    cancelled when the deadline passes. A backoff wait that would outlast
    the deadline is not started; the run stops with DEADLINE_EXCEEDED
    instead.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        attempt_timeout_seconds: float,
        request_id: str = "",
    ) -> None:
        """Initialize the retry controller.

        Args:
            policy: Attempt count and backoff policy.
            attempt_timeout_seconds: Upper bound for a single attempt.
            request_id: Identifier of the retrieval run, for logging.
        """
        self._policy = policy
        self._attempt_timeout_seconds = attempt_timeout_seconds
        self._metrics = RetrievalMetrics.get_instance()
        self._log = logger.bind(component="retry", request_id=request_id)

    async def run(
        self,
        executor: StrategyExecutor,
        url: str,
        session: SessionState,
        deadline: Deadline,
    ) -> RetryOutcome:
        """Run a strategy with retries.

        Args:
            executor: Strategy to run.
            url: URL to retrieve.
            session: Session artifacts passed to every attempt.
            deadline: Request-wide deadline.

        Returns:
            RetryOutcome with the content, or with the last failure.
        """
        log = self._log.bind(strategy=executor.name, url=redact_url_credentials(url))
        attempts: list[AttemptResult] = []
        last_failure: Failure | None = None

        for attempt in range(1, self._policy.max_attempts + 1):
            if deadline.expired:
                last_failure = _deadline_failure(
                    url, deadline, f"before attempt {attempt}"
                )
                break

            start_time_ns = time.perf_counter_ns()
            self._metrics.record_attempt(executor.name)
            result = await self._attempt(executor, url, session, deadline)
            duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000

            attempts.append(
                AttemptResult(
                    strategy_name=executor.name,
                    attempt_number=attempt,
                    url=url,
                    failure=result if isinstance(result, Failure) else None,
                    duration_ms=duration_ms,
                )
            )

            if isinstance(result, Content):
                return RetryOutcome(content=result, attempts=tuple(attempts))

            failure = result
            last_failure = failure
            log.info(
                "attempt_failed",
                attempt=attempt,
                max_attempts=self._policy.max_attempts,
                failure_kind=failure.kind.value,
                status_code=failure.status_code,
                duration_ms=round(duration_ms, 2),
            )

            if not self._policy.should_retry(failure, attempt):
                break

            delay_seconds = self._policy.get_delay_ms(attempt) / 1000.0
            if delay_seconds >= deadline.remaining():
                last_failure = _deadline_failure(
                    url, deadline, f"before retry {attempt + 1}"
                )
                log.info(
                    "deadline_exceeded",
                    attempt=attempt,
                    delay_ms=int(delay_seconds * 1000),
                )
                break

            self._metrics.record_retry()
            log.debug(
                "retry_backoff",
                attempt=attempt,
                delay_ms=int(delay_seconds * 1000),
            )
            await asyncio.sleep(delay_seconds)

        return RetryOutcome(failure=last_failure, attempts=tuple(attempts))

    async def _attempt(
        self,
        executor: StrategyExecutor,
        url: str,
        session: SessionState,
        deadline: Deadline,
    ) -> Content | Failure:
        timeout = deadline.bound(self._attempt_timeout_seconds)

        try:
            async with asyncio.timeout(deadline.remaining()) as scope:
                content = await executor.execute(url, session, timeout)
        except StrategyError as e:
            return e.failure
        except TimeoutError as e:
            if scope.expired():
                return _deadline_failure(url, deadline, "during attempt")
            return Failure(
                kind=FailureKind.TIMEOUT,
                message=f"Attempt timed out: {e}" if str(e) else "Attempt timed out",
                url=url,
            )
        except Exception as e:  # noqa: BLE001
            return Failure(
                kind=FailureKind.UNKNOWN,
                message=f"Unexpected error: {type(e).__name__}: {e}",
                url=url,
            )

        return content
