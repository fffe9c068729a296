"""State machine for one retrieval orchestration."""

from enum import Enum

import structlog


logger = structlog.get_logger()


class OrchestrationState(str, Enum):
    """State of a retrieval run.

    - IDLE: Not yet started
    - BOOTSTRAPPING_SESSION: Visiting the base URL for session artifacts
    - ATTEMPTING_STRATEGY: Running one strategy against the target URL
    - SUCCESS: Content retrieved
    - EXHAUSTED: Strategies or time ran out
    """

    IDLE = "IDLE"
    BOOTSTRAPPING_SESSION = "BOOTSTRAPPING_SESSION"
    ATTEMPTING_STRATEGY = "ATTEMPTING_STRATEGY"
    SUCCESS = "SUCCESS"
    EXHAUSTED = "EXHAUSTED"


# Valid state transitions
_VALID_TRANSITIONS: dict[OrchestrationState, set[OrchestrationState]] = {
    OrchestrationState.IDLE: {
        OrchestrationState.BOOTSTRAPPING_SESSION,
        OrchestrationState.ATTEMPTING_STRATEGY,
        OrchestrationState.EXHAUSTED,
    },
    # Bootstrap failures are not terminal
    OrchestrationState.BOOTSTRAPPING_SESSION: {
        OrchestrationState.ATTEMPTING_STRATEGY,
        OrchestrationState.EXHAUSTED,
    },
    # Escalation re-enters ATTEMPTING_STRATEGY with the next index
    OrchestrationState.ATTEMPTING_STRATEGY: {
        OrchestrationState.ATTEMPTING_STRATEGY,
        OrchestrationState.SUCCESS,
        OrchestrationState.EXHAUSTED,
    },
    OrchestrationState.SUCCESS: set(),  # Terminal state
    OrchestrationState.EXHAUSTED: set(),  # Terminal state
}


class OrchestrationTransitionError(Exception):
    """Raised when an illegal state transition is attempted."""

    def __init__(
        self,
        request_id: str,
        from_state: OrchestrationState,
        to_state: OrchestrationState,
    ) -> None:
        """Initialize the transition error.

        Args:
            request_id: Identifier of the retrieval run.
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.request_id = request_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal state transition for request '{request_id}': "
            f"{from_state.value} -> {to_state.value}"
        )


class OrchestrationStateMachine:
    """Tracks the state of one retrieval run and the active strategy.

    Strategy indexes only move forward, so a failed strategy is never
    revisited.
    """

    def __init__(self, request_id: str) -> None:
        """Initialize the state machine in IDLE.

        Args:
            request_id: Identifier of the retrieval run.
        """
        self._request_id = request_id
        self._state = OrchestrationState.IDLE
        self._strategy_index = 0
        self._log = logger.bind(component="orchestrator", request_id=request_id)

    @property
    def state(self) -> OrchestrationState:
        """Get the current state."""
        return self._state

    @property
    def strategy_index(self) -> int:
        """Get the 1-indexed active strategy, or 0 before the first."""
        return self._strategy_index

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return self._state in (OrchestrationState.SUCCESS, OrchestrationState.EXHAUSTED)

    def can_transition_to(self, target: OrchestrationState) -> bool:
        """Check if a transition to the target state is valid.

        Args:
            target: The target state.

        Returns:
            True if the transition is valid.
        """
        return target in _VALID_TRANSITIONS.get(self._state, set())

    def transition_to(self, target: OrchestrationState) -> None:
        """Transition to a new state.

        Args:
            target: The target state.

        Raises:
            OrchestrationTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            self._log.error(
                "illegal_state_transition",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise OrchestrationTransitionError(
                request_id=self._request_id,
                from_state=self._state,
                to_state=target,
            )

        old_state = self._state
        self._state = target

        self._log.debug(
            "state_transition",
            from_state=old_state.value,
            to_state=target.value,
            strategy_index=self._strategy_index,
        )

    def to_bootstrapping(self) -> None:
        """Transition to BOOTSTRAPPING_SESSION."""
        self.transition_to(OrchestrationState.BOOTSTRAPPING_SESSION)

    def to_next_strategy(self) -> int:
        """Advance to the next strategy.

        Returns:
            The new 1-indexed strategy number.
        """
        self.transition_to(OrchestrationState.ATTEMPTING_STRATEGY)
        self._strategy_index += 1
        return self._strategy_index

    def to_success(self) -> None:
        """Transition to SUCCESS."""
        self.transition_to(OrchestrationState.SUCCESS)

    def to_exhausted(self) -> None:
        """Transition to EXHAUSTED."""
        self.transition_to(OrchestrationState.EXHAUSTED)
