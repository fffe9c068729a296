"""Session-aware content retrieval with strategy escalation."""

from sessionfetch.config import OrchestratorConfig, RetryPolicy
from sessionfetch.errors import ClassifiedError, ErrorKind, RequestValidationError
from sessionfetch.fetch import Content, SessionState, StrategyError, StrategyExecutor
from sessionfetch.orchestrator import EscalationOrchestrator, RetrievalResult, retrieve


__version__ = "0.1.0"

__all__ = [
    "ClassifiedError",
    "Content",
    "ErrorKind",
    "EscalationOrchestrator",
    "OrchestratorConfig",
    "RequestValidationError",
    "RetrievalResult",
    "RetryPolicy",
    "SessionState",
    "StrategyError",
    "StrategyExecutor",
    "retrieve",
]
