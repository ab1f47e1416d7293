"""Unit tests for the per-host state machine."""

import pytest

from serverlink.link.state_machine import (
    LinkState,
    LinkStateMachine,
    LinkStateTransitionError,
)


class TestLinkState:
    """Tests for LinkState enum."""

    def test_all_states_defined(self) -> None:
        """Verify all required states are defined."""
        assert LinkState.PROBING == "PROBING"
        assert LinkState.RETRYING == "RETRYING"
        assert LinkState.SUCCEEDED == "SUCCEEDED"
        assert LinkState.FAILED_FATAL == "FAILED_FATAL"
        assert LinkState.FAILED_EXHAUSTED == "FAILED_EXHAUSTED"
        assert len(LinkState) == 5


class TestLinkStateMachine:
    """Tests for LinkStateMachine."""

    def test_initial_state(self) -> None:
        """State machine starts probing attempt 1."""
        sm = LinkStateMachine(host="a.test")

        assert sm.state == LinkState.PROBING
        assert sm.attempt == 1
        assert sm.is_terminal is False

    def test_retry_cycle_advances_attempt(self) -> None:
        """RETRYING -> PROBING starts the next attempt."""
        sm = LinkStateMachine(host="a.test")

        sm.to_retrying()
        assert sm.attempt == 1
        sm.to_probing()
        assert sm.attempt == 2
        sm.to_retrying()
        sm.to_probing()
        assert sm.attempt == 3

    @pytest.mark.parametrize(
        ("method", "state"),
        [
            ("to_succeeded", LinkState.SUCCEEDED),
            ("to_failed_fatal", LinkState.FAILED_FATAL),
            ("to_failed_exhausted", LinkState.FAILED_EXHAUSTED),
        ],
    )
    def test_terminal_states(self, method: str, state: LinkState) -> None:
        """Probing can end in any terminal state."""
        sm = LinkStateMachine(host="a.test")

        getattr(sm, method)()

        assert sm.state == state
        assert sm.is_terminal is True

    def test_terminal_state_has_no_exit(self) -> None:
        """Terminal states allow no transitions."""
        sm = LinkStateMachine(host="a.test")
        sm.to_failed_fatal()

        with pytest.raises(LinkStateTransitionError) as exc_info:
            sm.to_retrying()

        assert exc_info.value.from_state == LinkState.FAILED_FATAL
        assert exc_info.value.to_state == LinkState.RETRYING

    def test_cannot_settle_while_retrying(self) -> None:
        """A backoff must be followed by another probe."""
        sm = LinkStateMachine(host="a.test")
        sm.to_retrying()

        assert sm.can_transition_to(LinkState.SUCCEEDED) is False
        with pytest.raises(LinkStateTransitionError, match="RETRYING -> SUCCEEDED"):
            sm.to_succeeded()

    def test_cannot_probe_twice(self) -> None:
        """PROBING -> PROBING is invalid."""
        sm = LinkStateMachine(host="a.test")

        with pytest.raises(LinkStateTransitionError):
            sm.to_probing()
