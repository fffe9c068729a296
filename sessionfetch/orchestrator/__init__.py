"""Resilient session-aware retrieval.

Runs an optional session bootstrap against a base URL, then escalates
through an ordered list of strategies under one request-wide deadline:
- Deadline: one absolute instant per request
- RetryController: bounded retries of a single strategy
- EscalationOrchestrator: bootstrap, fallback and error classification
"""

from collections.abc import Sequence

from sessionfetch.config.models import OrchestratorConfig
from sessionfetch.fetch.executor import StrategyExecutor
from sessionfetch.orchestrator.deadline import Deadline
from sessionfetch.orchestrator.metrics import RetrievalMetrics
from sessionfetch.orchestrator.orchestrator import EscalationOrchestrator, RetrievalResult
from sessionfetch.orchestrator.request import FetchRequest, build_request
from sessionfetch.orchestrator.retry import RetryController, RetryOutcome
from sessionfetch.orchestrator.state_machine import (
    OrchestrationState,
    OrchestrationStateMachine,
    OrchestrationTransitionError,
)
from sessionfetch.orchestrator.strategies import (
    AVAILABLE_STRATEGIES,
    DEFAULT_STRATEGY_NAMES,
    build_strategies,
)


async def retrieve(
    target_url: str | None,
    base_url: str | None = None,
    total_budget_seconds: float | None = None,
    *,
    strategies: Sequence[StrategyExecutor] | None = None,
    config: OrchestratorConfig | None = None,
) -> RetrievalResult:
    """Retrieve a URL, bootstrapping a session from `base_url` first.

    Args:
        target_url: URL whose content is wanted.
        base_url: Optional URL visited first for cookies and session headers.
        total_budget_seconds: Total budget; defaults to the config.
        strategies: Ordered strategies; defaults to DEFAULT_STRATEGY_NAMES.
        config: Orchestration configuration.

    Returns:
        RetrievalResult with content or one classified error.

    Raises:
        RequestValidationError: If the input is missing or malformed.
    """
    config = config or OrchestratorConfig()
    if strategies is None:
        strategies = build_strategies(DEFAULT_STRATEGY_NAMES, config)
    orchestrator = EscalationOrchestrator(strategies, config)
    return await orchestrator.retrieve(target_url, base_url, total_budget_seconds)


__all__ = [
    "AVAILABLE_STRATEGIES",
    "DEFAULT_STRATEGY_NAMES",
    "Deadline",
    "EscalationOrchestrator",
    "FetchRequest",
    "OrchestrationState",
    "OrchestrationStateMachine",
    "OrchestrationTransitionError",
    "RetrievalMetrics",
    "RetrievalResult",
    "RetryController",
    "RetryOutcome",
    "build_request",
    "build_strategies",
    "retrieve",
]
