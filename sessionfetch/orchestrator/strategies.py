"""Build ordered strategy lists from configured names."""

from collections.abc import Callable, Sequence

from sessionfetch.config.models import OrchestratorConfig
from sessionfetch.fetch.browser_executor import BrowserExecutor, BrowserMode
from sessionfetch.fetch.constants import DEFAULT_USER_AGENT
from sessionfetch.fetch.executor import StrategyExecutor
from sessionfetch.fetch.http_executor import HttpExecutor


STRATEGY_HTTP = "http"
STRATEGY_BROWSER = "browser"
STRATEGY_BROWSER_FETCH = "browser_fetch"

DEFAULT_STRATEGY_NAMES: tuple[str, ...] = (STRATEGY_HTTP, STRATEGY_BROWSER_FETCH)

_FACTORIES: dict[str, Callable[[OrchestratorConfig, str], StrategyExecutor]] = {
    STRATEGY_HTTP: lambda config, user_agent: HttpExecutor(
        name=STRATEGY_HTTP,
        user_agent=user_agent,
        max_response_size_bytes=config.max_response_size_bytes,
    ),
    STRATEGY_BROWSER: lambda _config, user_agent: BrowserExecutor(
        name=STRATEGY_BROWSER,
        mode=BrowserMode.NAVIGATE,
        user_agent=user_agent,
    ),
    STRATEGY_BROWSER_FETCH: lambda _config, user_agent: BrowserExecutor(
        name=STRATEGY_BROWSER_FETCH,
        mode=BrowserMode.IN_PAGE_FETCH,
        user_agent=user_agent,
    ),
}

AVAILABLE_STRATEGIES: tuple[str, ...] = tuple(_FACTORIES)


def build_strategies(
    names: Sequence[str],
    config: OrchestratorConfig | None = None,
    user_agent: str = DEFAULT_USER_AGENT,
) -> list[StrategyExecutor]:
    """Create executors for the given strategy names, in order.

    Args:
        names: Strategy names, tried in this order.
        config: Orchestration configuration.
        user_agent: User agent for every executor.

    Returns:
        Executors in the same order as `names`.

    Raises:
        ValueError: If a name is unknown or repeated.
    """
    config = config or OrchestratorConfig()
    unknown = [name for name in names if name not in _FACTORIES]
    if unknown:
        msg = f"Unknown strategies {unknown}; available: {list(AVAILABLE_STRATEGIES)}"
        raise ValueError(msg)
    if len(set(names)) != len(names):
        msg = f"Strategy names must be unique: {list(names)}"
        raise ValueError(msg)
    return [_FACTORIES[name](config, user_agent) for name in names]
