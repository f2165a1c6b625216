"""
Completion waiter.

Long-polls a deployment until it is terminal or the caller's deadline passes,
then fetches and decrypts the outputs of a succeeded deployment.

Dependencies: pyrage, deploy_client.boundary.control_plane, deploy_client.core
System role: Wait and decrypt phases of a deployment
"""

import json
import logging
import time
from typing import Any, Callable

import pyrage

from deploy_client.boundary.control_plane import ControlPlaneClient
from deploy_client.configs.settings import Settings
from deploy_client.core.completion import (
    Aborted,
    Deadline,
    Failed,
    Outcome,
    Succeeded,
    WaiterState,
    after_poll,
    unwrap,
)
from deploy_client.core.exceptions import (
    DeadlineExceededError,
    DeployClientError,
    KeyMaterialReleasedError,
    OutputRetrievalError,
)
from deploy_client.core.key_exchange import KeyPair
from deploy_client.models.deployment import Job
from deploy_client.observability import log_exception_with_context

logger = logging.getLogger(__name__)


def _retrieval_failure(job: Job, stage: str, cause: Exception) -> Aborted:
    log_exception_with_context(
        logger,
        f"{__name__}:run - Outputs of {job.id} unavailable at {stage} stage",
        cause,
        job_id=job.id,
        stage=stage,
    )
    error = OutputRetrievalError(
        f"Deployment {job.id} succeeded but its outputs are unavailable ({stage}): {cause}",
        job_id=job.id,
        stage=stage,
    )
    error.__cause__ = cause
    return Aborted(error=error, job=job)


class CompletionWaiter:
    """
    Waits for one deployment at a time on the calling thread.

    Poll requests are strictly sequential. The overall deadline is fixed at
    the start of each call; request-level timeouts (HTTP 408 or a local read
    timeout) only lead to another poll while that deadline holds.
    """

    def __init__(
        self,
        client: ControlPlaneClient,
        default_timeout: float = 600.0,
        long_poll_timeout: float = 60.0,
        min_poll_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize completion waiter.

        Args:
            client: Control plane client
            default_timeout: Overall deadline in seconds when none is given
            long_poll_timeout: Upper bound for a single poll request
            min_poll_interval: Minimum seconds between poll starts
            clock: Monotonic clock in seconds
            sleep: Sleep function used for poll throttling
        """
        self.client = client
        self.default_timeout = default_timeout
        self.long_poll_timeout = long_poll_timeout
        self.min_poll_interval = min_poll_interval
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_settings(cls, client: ControlPlaneClient, settings: Settings) -> "CompletionWaiter":
        return cls(
            client=client,
            default_timeout=settings.waiter.default_timeout,
            long_poll_timeout=settings.waiter.long_poll_timeout,
            min_poll_interval=settings.waiter.min_poll_interval,
        )

    def wait(self, job_id: str, key_pair: KeyPair, timeout: float | None = None) -> Any:
        """
        Wait for a deployment and return its decrypted outputs.

        Args:
            job_id: Deployment id
            key_pair: Key pair whose recipient was submitted with the job
            timeout: Overall deadline in seconds (default_timeout if None)

        Returns:
            Any: Decrypted outputs document

        Raises:
            DeadlineExceededError: Deadline passed while the job was pending
            JobFailedError: The job reached the 'failed' state
            OutputRetrievalError: Job succeeded but outputs were unavailable
            ClientError: Transport failure while polling
            ApiError: Unexpected status while polling
        """
        return unwrap(self.run(job_id, key_pair, timeout))

    def run(self, job_id: str, key_pair: KeyPair, timeout: float | None = None) -> Outcome:
        """
        Wait for a deployment and report the terminal outcome without raising.

        Returns:
            Outcome: Succeeded, Failed or Aborted
        """
        deadline = Deadline(timeout if timeout is not None else self.default_timeout, self._clock)
        started = self._clock()
        polls = 0
        last_poll_at: float | None = None
        state = WaiterState.POLLING

        while state is WaiterState.POLLING:
            self._throttle(last_poll_at, deadline)
            if deadline.elapsed():
                return self._deadline_exceeded(job_id, deadline, polls)

            last_poll_at = self._clock()
            try:
                result = self.client.wait_for_completion(
                    job_id,
                    timeout=min(deadline.remaining(), self.long_poll_timeout),
                )
            except DeployClientError as e:
                result = e
            polls += 1
            state = after_poll(result, deadline.elapsed())
            logger.debug(
                f"{__name__}:run - Poll {polls} for {job_id} -> {state.value}",
                extra={"job_id": job_id, "polls": polls},
            )

        if state is WaiterState.ABORTED:
            if isinstance(result, DeployClientError):
                logger.warning(f"{__name__}:run - Polling {job_id} aborted: {result}")
                return Aborted(error=result)
            return self._deadline_exceeded(job_id, deadline, polls)

        job = result
        elapsed = self._clock() - started
        if state is WaiterState.FAILED:
            logger.warning(
                f"{__name__}:run - Deployment {job.id} failed after {polls} poll(s): "
                f"{job.status_message}",
                extra={"job_id": job.id, "polls": polls, "elapsed_sec": round(elapsed, 3)},
            )
            return Failed(job=job)

        logger.info(
            f"{__name__}:run - Deployment {job.id} succeeded after {polls} poll(s)",
            extra={"job_id": job.id, "polls": polls, "elapsed_sec": round(elapsed, 3)},
        )
        return self._decrypt_outputs(job, key_pair)

    def _throttle(self, last_poll_at: float | None, deadline: Deadline) -> None:
        if last_poll_at is None or self.min_poll_interval <= 0:
            return
        wait = self.min_poll_interval - (self._clock() - last_poll_at)
        if wait > 0:
            self._sleep(min(wait, deadline.remaining()))

    def _deadline_exceeded(self, job_id: str, deadline: Deadline, polls: int) -> Aborted:
        logger.warning(
            f"{__name__}:run - Deadline of {deadline.timeout:g}s exceeded for {job_id}",
            extra={"job_id": job_id, "polls": polls},
        )
        return Aborted(error=DeadlineExceededError(job_id, deadline.timeout))

    def _decrypt_outputs(self, job: Job, key_pair: KeyPair) -> Outcome:
        try:
            encrypted = self.client.get_encrypted_outputs(job.id)
        except DeployClientError as e:
            return _retrieval_failure(job, "fetch", e)

        try:
            ciphertext = encrypted.ciphertext()
        except ValueError as e:
            return _retrieval_failure(job, "decode", e)

        try:
            plaintext = key_pair.decrypt(ciphertext)
        except (pyrage.DecryptError, KeyMaterialReleasedError) as e:
            return _retrieval_failure(job, "decrypt", e)

        try:
            outputs = json.loads(plaintext)
        except ValueError as e:
            return _retrieval_failure(job, "parse", e)

        return Succeeded(outputs=outputs, job=job)
