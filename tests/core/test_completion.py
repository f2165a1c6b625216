"""
Test suite for the completion state machine.

Exercises poll transitions, outcome unwrapping and deadlines in isolation
from any network layer.

System role: Verification of waiting decisions
"""

from datetime import datetime, timezone

import pytest

from deploy_client.core.completion import (
    TERMINAL_STATES,
    Aborted,
    Deadline,
    Failed,
    RequestTimedOut,
    Succeeded,
    WaiterState,
    after_poll,
    unwrap,
)
from deploy_client.core.exceptions import (
    ApiError,
    ClientError,
    DeadlineExceededError,
    JobFailedError,
)
from deploy_client.models.deployment import Job


def make_job(status: str, message: str = "") -> Job:
    return Job(
        id="job-1",
        status=status,
        status_message=message,
        created_at=datetime(2025, 1, 2, tzinfo=timezone.utc),
    )


class TestAfterPoll:
    """Test suite for after_poll transitions."""

    def test_request_timeout_before_deadline_keeps_polling(self) -> None:
        assert after_poll(RequestTimedOut(408), deadline_elapsed=False) is WaiterState.POLLING

    def test_request_timeout_after_deadline_aborts(self) -> None:
        assert after_poll(RequestTimedOut(), deadline_elapsed=True) is WaiterState.ABORTED

    def test_succeeded_job_moves_to_decrypting(self) -> None:
        assert after_poll(make_job("succeeded"), deadline_elapsed=False) is WaiterState.DECRYPTING

    def test_failed_job_moves_to_failed(self) -> None:
        assert after_poll(make_job("failed"), deadline_elapsed=False) is WaiterState.FAILED

    def test_terminal_job_wins_over_elapsed_deadline(self) -> None:
        """Test a terminal answer is used even if it arrived at the deadline."""
        assert after_poll(make_job("succeeded"), deadline_elapsed=True) is WaiterState.DECRYPTING
        assert after_poll(make_job("failed"), deadline_elapsed=True) is WaiterState.FAILED

    def test_pending_job_keeps_polling_until_deadline(self) -> None:
        """Test a long-poll released early with a pending job is polled again."""
        assert after_poll(make_job("pending"), deadline_elapsed=False) is WaiterState.POLLING
        assert after_poll(make_job("pending"), deadline_elapsed=True) is WaiterState.ABORTED

    @pytest.mark.parametrize(
        "error",
        [ClientError("connection refused"), ApiError("bad gateway", status_code=500)],
    )
    def test_errors_abort(self, error: Exception) -> None:
        assert after_poll(error, deadline_elapsed=False) is WaiterState.ABORTED

    def test_terminal_states(self) -> None:
        assert WaiterState.POLLING not in TERMINAL_STATES
        assert WaiterState.DECRYPTING not in TERMINAL_STATES
        assert TERMINAL_STATES == {
            WaiterState.FAILED,
            WaiterState.ABORTED,
            WaiterState.DECRYPTED,
        }


class TestUnwrap:
    """Test suite for unwrap."""

    def test_succeeded_returns_outputs(self) -> None:
        outcome = Succeeded(outputs={"url": "https://example.test"}, job=make_job("succeeded"))

        assert unwrap(outcome) == {"url": "https://example.test"}

    def test_failed_raises_job_failed_with_message(self) -> None:
        outcome = Failed(job=make_job("failed", "quota exceeded"))

        with pytest.raises(JobFailedError) as exc_info:
            unwrap(outcome)

        assert exc_info.value.status_message == "quota exceeded"
        assert exc_info.value.job_id == "job-1"
        assert outcome.message == "quota exceeded"

    def test_aborted_raises_recorded_error(self) -> None:
        error = DeadlineExceededError("job-1", 30.0)

        with pytest.raises(DeadlineExceededError) as exc_info:
            unwrap(Aborted(error=error))

        assert exc_info.value is error


class TestDeadline:
    """Test suite for Deadline."""

    def test_deadline_is_fixed_at_creation(self, clock) -> None:
        clock.advance(100.0)
        deadline = Deadline(30.0, clock)

        clock.advance(10.0)
        assert deadline.remaining() == pytest.approx(20.0)
        assert not deadline.elapsed()

        clock.advance(20.0)
        assert deadline.remaining() == 0.0
        assert deadline.elapsed()

    def test_remaining_never_negative(self, clock) -> None:
        deadline = Deadline(1.0, clock)

        clock.advance(5.0)

        assert deadline.remaining() == 0.0
