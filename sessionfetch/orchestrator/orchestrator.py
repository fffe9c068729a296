"""Escalation orchestrator: session bootstrap, strategy fallback, deadline."""

import asyncio
import time
import uuid
from collections.abc import Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field

from sessionfetch.config.models import OrchestratorConfig
from sessionfetch.errors.classifier import classify
from sessionfetch.errors.models import ClassifiedError
from sessionfetch.fetch.constants import REFERER_HEADER
from sessionfetch.fetch.cookies import extract_session
from sessionfetch.fetch.executor import StrategyExecutor
from sessionfetch.fetch.models import (
    AttemptResult,
    Content,
    Failure,
    FailureKind,
    SessionState,
)
from sessionfetch.fetch.redact import describe_session, redact_url_credentials
from sessionfetch.orchestrator.deadline import Deadline
from sessionfetch.orchestrator.metrics import RetrievalMetrics
from sessionfetch.orchestrator.request import FetchRequest, build_request
from sessionfetch.orchestrator.retry import RetryController
from sessionfetch.orchestrator.state_machine import OrchestrationStateMachine


logger = structlog.get_logger()


class RetrievalResult(BaseModel):
    """Outcome of one retrieval: content or a single classified error."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    request_id: str
    content: Content | None = None
    error: ClassifiedError | None = None
    bootstrap_attempts: tuple[AttemptResult, ...] = Field(default=())
    attempts: tuple[AttemptResult, ...] = Field(default=())
    session: SessionState = Field(default_factory=SessionState)
    duration_ms: float = Field(default=0.0, ge=0.0)

    @property
    def is_success(self) -> bool:
        """Check if content was retrieved."""
        return self.content is not None

    @property
    def strategies_tried(self) -> list[str]:
        """Get strategy names in the order they were first attempted."""
        return list(dict.fromkeys(a.strategy_name for a in self.attempts))


class EscalationOrchestrator:
    """Retrieve a target URL through an ordered list of strategies.

    Per request:
    1. If a base URL is given, run the bootstrap strategy against it and
       extract cookies and session headers (failure is logged and ignored)
    2. Run strategies in declared order against the target URL, each under
       the retry controller, carrying the session forward
    3. Stop at the first success, at a fatal failure, or when the deadline
       passes; classify the last failure otherwise

    The orchestrator holds configuration only. Session state, deadline and
    state machine are created per request, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        strategies: Sequence[StrategyExecutor],
        config: OrchestratorConfig | None = None,
        bootstrap_strategy: StrategyExecutor | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            strategies: Strategies in the order they must be tried.
            config: Orchestration configuration.
            bootstrap_strategy: Strategy for the base URL; defaults to the
                one named by `config.bootstrap_strategy`, else the first.

        Raises:
            ValueError: If no strategy is given, names repeat, or the
                configured bootstrap strategy is unknown.
        """
        if not strategies:
            msg = "At least one strategy is required"
            raise ValueError(msg)

        names = [strategy.name for strategy in strategies]
        if len(set(names)) != len(names):
            msg = f"Strategy names must be unique: {names}"
            raise ValueError(msg)

        self._strategies = tuple(strategies)
        self._config = config or OrchestratorConfig()
        self._bootstrap_strategy = bootstrap_strategy or self._resolve_bootstrap()
        self._metrics = RetrievalMetrics.get_instance()

    def _resolve_bootstrap(self) -> StrategyExecutor:
        name = self._config.bootstrap_strategy
        if name is None:
            return self._strategies[0]
        for strategy in self._strategies:
            if strategy.name == name:
                return strategy
        msg = f"Unknown bootstrap strategy '{name}'; known: {self.strategy_names}"
        raise ValueError(msg)

    @property
    def strategy_names(self) -> list[str]:
        """Get strategy names in declared order."""
        return [strategy.name for strategy in self._strategies]

    @property
    def config(self) -> OrchestratorConfig:
        """Get the orchestration configuration."""
        return self._config

    async def retrieve(
        self,
        target_url: str | None,
        base_url: str | None = None,
        total_budget_seconds: float | None = None,
    ) -> RetrievalResult:
        """Validate input and retrieve the target URL.

        Args:
            target_url: URL whose content is wanted.
            base_url: Optional URL to establish a session from first.
            total_budget_seconds: Total budget; defaults to the config.

        Returns:
            RetrievalResult with content or one classified error.

        Raises:
            RequestValidationError: If the input is missing or malformed.
                Raised before any strategy runs or budget is consumed.
        """
        request = build_request(
            target_url=target_url,
            base_url=base_url,
            total_budget_seconds=(
                total_budget_seconds
                if total_budget_seconds is not None
                else self._config.total_budget_seconds
            ),
        )
        return await self.run(request)

    async def run(self, request: FetchRequest) -> RetrievalResult:
        """Run the orchestration for a validated request.

        Args:
            request: The validated request.

        Returns:
            RetrievalResult with content or one classified error.
        """
        request_id = uuid.uuid4().hex
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            return await self._run(request, request_id)

    async def _run(self, request: FetchRequest, request_id: str) -> RetrievalResult:
        start_time_ns = time.perf_counter_ns()
        deadline = Deadline(request.total_budget_seconds)
        machine = OrchestrationStateMachine(request_id)
        retry = RetryController(
            policy=self._config.retry_policy,
            attempt_timeout_seconds=self._config.attempt_timeout_seconds,
            request_id=request_id,
        )
        log = logger.bind(
            component="orchestrator",
            request_id=request_id,
            target_url=redact_url_credentials(request.target_url),
        )
        log.info(
            "retrieve_start",
            base_url=(
                redact_url_credentials(request.base_url) if request.base_url else None
            ),
            strategies=self.strategy_names,
            budget_seconds=request.total_budget_seconds,
        )

        session = SessionState()
        bootstrap_attempts: tuple[AttemptResult, ...] = ()
        if request.base_url is not None:
            machine.to_bootstrapping()
            session, bootstrap_attempts = await self._bootstrap(
                request.base_url, retry, deadline, log
            )

        attempts: list[AttemptResult] = []
        last_failure: Failure | None = None
        last_strategy: str | None = None

        for strategy in self._strategies:
            if deadline.expired:
                last_failure = Failure(
                    kind=FailureKind.DEADLINE_EXCEEDED,
                    message=(
                        f"Deadline of {deadline.budget_seconds:.2f}s exceeded "
                        f"before strategy '{strategy.name}'"
                    ),
                    url=request.target_url,
                )
                log.info("deadline_exceeded", next_strategy=strategy.name)
                break

            index = machine.to_next_strategy()
            if index > 1:
                self._metrics.record_escalation()
            log.info("strategy_start", strategy=strategy.name, strategy_index=index)

            outcome = await retry.run(strategy, request.target_url, session, deadline)
            attempts.extend(outcome.attempts)

            if outcome.content is not None:
                machine.to_success()
                return self._finish(
                    request_id=request_id,
                    start_time_ns=start_time_ns,
                    log=log,
                    content=outcome.content,
                    session=session,
                    bootstrap_attempts=bootstrap_attempts,
                    attempts=attempts,
                )

            last_failure = outcome.failure
            last_strategy = strategy.name
            log.warning(
                "strategy_failed",
                strategy=strategy.name,
                strategy_index=index,
                failure_kind=last_failure.kind.value if last_failure else None,
                attempts=len(outcome.attempts),
            )

            if last_failure is not None and last_failure.is_fatal:
                break

        machine.to_exhausted()
        return self._finish(
            request_id=request_id,
            start_time_ns=start_time_ns,
            log=log,
            error=classify(last_failure, request.target_url, last_strategy),
            session=session,
            bootstrap_attempts=bootstrap_attempts,
            attempts=attempts,
        )

    async def _bootstrap(
        self,
        base_url: str,
        retry: RetryController,
        deadline: Deadline,
        log: structlog.stdlib.BoundLogger,
    ) -> tuple[SessionState, tuple[AttemptResult, ...]]:
        strategy = self._bootstrap_strategy
        log.info(
            "bootstrap_start",
            strategy=strategy.name,
            base_url=redact_url_credentials(base_url),
        )

        outcome = await retry.run(strategy, base_url, SessionState(), deadline)

        if outcome.content is None:
            self._metrics.record_bootstrap(succeeded=False)
            log.warning(
                "bootstrap_failed",
                strategy=strategy.name,
                failure_kind=outcome.failure.kind.value if outcome.failure else None,
                message=outcome.failure.message if outcome.failure else None,
            )
            return SessionState(), outcome.attempts

        self._metrics.record_bootstrap(succeeded=True)
        session = extract_session(outcome.content.headers)
        if self._config.send_referer:
            session = session.with_header(REFERER_HEADER, base_url)
        log.info("session_extracted", **describe_session(session))

        settle_seconds = self._config.bootstrap_settle_ms / 1000.0
        if settle_seconds > 0:
            await asyncio.sleep(deadline.bound(settle_seconds))

        return session, outcome.attempts

    def _finish(
        self,
        request_id: str,
        start_time_ns: int,
        log: structlog.stdlib.BoundLogger,
        session: SessionState,
        bootstrap_attempts: tuple[AttemptResult, ...],
        attempts: list[AttemptResult],
        content: Content | None = None,
        error: ClassifiedError | None = None,
    ) -> RetrievalResult:
        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        self._metrics.record_outcome(error.kind if error else None, duration_ms)

        log.info(
            "retrieve_complete",
            success=content is not None,
            strategy=content.strategy_name if content else None,
            bytes=content.body_size if content else 0,
            error_kind=error.kind.value if error else None,
            attempts=len(attempts),
            duration_ms=round(duration_ms, 2),
        )

        return RetrievalResult(
            request_id=request_id,
            content=content,
            error=error,
            bootstrap_attempts=bootstrap_attempts,
            attempts=tuple(attempts),
            session=session,
            duration_ms=duration_ms,
        )
