"""Strategy executor protocol.

A strategy executor performs exactly one retrieval attempt. Retries belong
to the retry controller and fallback to the orchestrator, so executors
must not loop or fall back on their own.
"""

from typing import Protocol, runtime_checkable

from sessionfetch.fetch.models import Content, SessionState


@runtime_checkable
class StrategyExecutor(Protocol):
    """Protocol for one concrete way of retrieving a URL.

    Implementations inject `session.request_headers()` into the request,
    honour `timeout`, and raise `StrategyError` with:
    - TIMEOUT when the attempt runs out of time
    - HTTP_ERROR for any non-2xx response
    - TRANSPORT_ERROR for connection or engine failures
    """

    name: str

    async def execute(
        self,
        url: str,
        session: SessionState,
        timeout: float,
    ) -> Content:
        """Retrieve a URL once.

        Args:
            url: Absolute URL to retrieve.
            session: Session artifacts to inject.
            timeout: Seconds available for this attempt.

        Returns:
            Content of a 2xx response.

        Raises:
            StrategyError: If the attempt fails.
        """
        ...
