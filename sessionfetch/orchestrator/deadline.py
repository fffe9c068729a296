"""Request-wide deadline tracking."""

import time
from collections.abc import Callable


class Deadline:
    """A single absolute instant shared by every step of one request.

    Uses a monotonic clock so wall-clock adjustments cannot stretch the
    budget.
    """

    def __init__(
        self,
        budget_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Start the deadline now.

        Args:
            budget_seconds: Total seconds allowed from now.
            clock: Monotonic clock, injectable for tests.
        """
        self._clock = clock
        self._budget_seconds = budget_seconds
        self._started_at = clock()
        self._expires_at = self._started_at + budget_seconds

    @property
    def budget_seconds(self) -> float:
        """Get the total budget."""
        return self._budget_seconds

    @property
    def expires_at(self) -> float:
        """Get the absolute expiry instant on the deadline's clock."""
        return self._expires_at

    def remaining(self) -> float:
        """Get seconds left, never negative."""
        return max(0.0, self._expires_at - self._clock())

    def elapsed(self) -> float:
        """Get seconds since the deadline started."""
        return self._clock() - self._started_at

    @property
    def expired(self) -> bool:
        """Check if no time is left."""
        return self.remaining() <= 0.0

    def bound(self, timeout: float) -> float:
        """Clamp a per-operation timeout to the time left."""
        return min(timeout, self.remaining())
