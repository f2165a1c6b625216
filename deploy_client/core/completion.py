"""
Completion state machine.

Pure transitions for waiting on a deployment: which state follows a poll
result, and how a terminal outcome turns into a return value or an error.
Kept free of I/O so every transition can be tested without a network layer.

Dependencies: deploy_client.models, deploy_client.core.exceptions
System role: Decision logic behind CompletionWaiter
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Union

from deploy_client.core.exceptions import DeployClientError, JobFailedError
from deploy_client.models.deployment import Job


class WaiterState(str, Enum):
    """States of a single wait invocation."""

    POLLING = "polling"
    DECRYPTING = "decrypting"
    FAILED = "failed"
    ABORTED = "aborted"
    DECRYPTED = "decrypted"


TERMINAL_STATES = frozenset({WaiterState.FAILED, WaiterState.ABORTED, WaiterState.DECRYPTED})


@dataclass(frozen=True)
class RequestTimedOut:
    """A long-poll request ended without a result; the job may still be pending."""

    status_code: int | None = None


PollResult = Union[Job, RequestTimedOut, DeployClientError]


@dataclass(frozen=True)
class Succeeded:
    """Job succeeded and its outputs were decrypted."""

    outputs: Any
    job: Job


@dataclass(frozen=True)
class Failed:
    """Job reached the terminal 'failed' state on the control plane."""

    job: Job

    @property
    def message(self) -> str:
        return self.job.status_message


@dataclass(frozen=True)
class Aborted:
    """Waiting stopped locally: deadline, transport, API or retrieval error."""

    error: DeployClientError
    job: Job | None = None


Outcome = Union[Succeeded, Failed, Aborted]


def after_poll(result: PollResult, deadline_elapsed: bool) -> WaiterState:
    """
    Next state after one status query.

    A terminal job wins over an elapsed deadline: the answer is already here.

    Args:
        result: What the long-poll request produced
        deadline_elapsed: Whether the caller's overall deadline has passed

    Returns:
        WaiterState: POLLING, DECRYPTING, FAILED or ABORTED
    """
    if isinstance(result, DeployClientError):
        return WaiterState.ABORTED
    if isinstance(result, Job):
        if result.succeeded:
            return WaiterState.DECRYPTING
        if result.failed:
            return WaiterState.FAILED
    # Request timeout or a job the server released while still pending
    return WaiterState.ABORTED if deadline_elapsed else WaiterState.POLLING


def unwrap(outcome: Outcome) -> Any:
    """
    Turn an outcome into outputs, raising the matching error otherwise.

    Raises:
        JobFailedError: For Failed
        DeployClientError: The recorded error for Aborted
    """
    if isinstance(outcome, Succeeded):
        return outcome.outputs
    if isinstance(outcome, Failed):
        raise JobFailedError(outcome.job.id, outcome.message)
    raise outcome.error


class Deadline:
    """Overall wall-clock budget, fixed when created and never extended."""

    def __init__(self, timeout: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.timeout = timeout
        self._clock = clock
        self._expires_at = clock() + timeout

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def elapsed(self) -> bool:
        return self._clock() >= self._expires_at
