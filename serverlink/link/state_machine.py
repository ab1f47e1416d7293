"""State machine for one host's poll loop."""

from enum import Enum

import structlog


logger = structlog.get_logger()


class LinkState(str, Enum):
    """State of a host during a wait call.

    - PROBING: Probe for the current attempt in progress
    - RETRYING: Backing off before the next attempt
    - SUCCEEDED: Host reported online
    - FAILED_FATAL: Host reported error or an unrecognized response
    - FAILED_EXHAUSTED: Attempt budget used up while not ready
    """

    PROBING = "PROBING"
    RETRYING = "RETRYING"
    SUCCEEDED = "SUCCEEDED"
    FAILED_FATAL = "FAILED_FATAL"
    FAILED_EXHAUSTED = "FAILED_EXHAUSTED"


_TERMINAL_STATES = frozenset(
    {LinkState.SUCCEEDED, LinkState.FAILED_FATAL, LinkState.FAILED_EXHAUSTED}
)

# Valid state transitions
_VALID_TRANSITIONS: dict[LinkState, set[LinkState]] = {
    LinkState.PROBING: {
        LinkState.RETRYING,
        LinkState.SUCCEEDED,
        LinkState.FAILED_FATAL,
        LinkState.FAILED_EXHAUSTED,
    },
    LinkState.RETRYING: {LinkState.PROBING},
    LinkState.SUCCEEDED: set(),
    LinkState.FAILED_FATAL: set(),
    LinkState.FAILED_EXHAUSTED: set(),
}


class LinkStateTransitionError(Exception):
    """Raised when an illegal state transition is attempted."""

    def __init__(
        self,
        host: str,
        from_state: LinkState,
        to_state: LinkState,
    ) -> None:
        """Initialize the transition error.

        Args:
            host: Host being polled.
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.host = host
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal state transition for host '{host}': "
            f"{from_state.value} -> {to_state.value}"
        )


class LinkStateMachine:
    """Manages state transitions and the attempt counter for one host.

    Starts in PROBING for attempt 1. Each RETRYING -> PROBING transition
    starts the next attempt.
    """

    def __init__(self, host: str, index: int = 0) -> None:
        """Initialize the state machine.

        Args:
            host: Host being polled (already redacted for logging).
            index: Position of the host in the wait call.
        """
        self._host = host
        self._state = LinkState.PROBING
        self._attempt = 1
        self._log = logger.bind(component="poller", host=host, index=index)

    @property
    def state(self) -> LinkState:
        """Get the current state."""
        return self._state

    @property
    def attempt(self) -> int:
        """Get the current attempt number (1-indexed)."""
        return self._attempt

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return self._state in _TERMINAL_STATES

    def can_transition_to(self, target: LinkState) -> bool:
        """Check if a transition to the target state is valid.

        Args:
            target: The target state.

        Returns:
            True if the transition is valid.
        """
        return target in _VALID_TRANSITIONS.get(self._state, set())

    def transition_to(self, target: LinkState) -> None:
        """Transition to a new state.

        Args:
            target: The target state.

        Raises:
            LinkStateTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            self._log.error(
                "illegal_state_transition",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise LinkStateTransitionError(
                host=self._host,
                from_state=self._state,
                to_state=target,
            )

        old_state = self._state
        self._state = target
        if old_state == LinkState.RETRYING:
            self._attempt += 1

        self._log.debug(
            "state_transition",
            from_state=old_state.value,
            to_state=target.value,
            attempt=self._attempt,
        )

    def to_retrying(self) -> None:
        """Transition to RETRYING state."""
        self.transition_to(LinkState.RETRYING)

    def to_probing(self) -> None:
        """Transition to PROBING state for the next attempt."""
        self.transition_to(LinkState.PROBING)

    def to_succeeded(self) -> None:
        """Transition to SUCCEEDED state."""
        self.transition_to(LinkState.SUCCEEDED)

    def to_failed_fatal(self) -> None:
        """Transition to FAILED_FATAL state."""
        self.transition_to(LinkState.FAILED_FATAL)

    def to_failed_exhausted(self) -> None:
        """Transition to FAILED_EXHAUSTED state."""
        self.transition_to(LinkState.FAILED_EXHAUSTED)
