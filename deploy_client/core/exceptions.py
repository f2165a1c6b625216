"""
Exception hierarchy for the deployment client.

Each failure mode of the submit/wait/decrypt workflow has its own type so that
callers can choose a remediation: retry the whole operation, treat the job as
genuinely failed, or treat it as succeeded with unavailable outputs.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the client
"""

from typing import Any


class DeployClientError(Exception):
    """Base exception for all deployment client errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidRequestError(DeployClientError):
    """Raised when a job request fails local validation."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize invalid request error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class ManifestParseError(InvalidRequestError):
    """Raised when manifest text is not a YAML/JSON mapping."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, field="manifest", details=details)


class ClientError(DeployClientError):
    """Raised on local or transport failures (network, serialization)."""

    pass


class ApiError(DeployClientError):
    """Raised when the control plane answers with an unexpected status code."""

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code returned by the control plane
            body: Raw response body for diagnostics
            details: Additional context
        """
        self.status_code = status_code
        self.body = body
        details = details or {}
        details["status_code"] = status_code
        if body:
            details["body"] = body[:500]
        super().__init__(message, details)


class JobNotFoundError(ApiError):
    """Raised when the control plane does not know the job id."""

    def __init__(self, job_id: str, body: str = "") -> None:
        self.job_id = job_id
        super().__init__(f"Deployment not found: {job_id}", 404, body, {"job_id": job_id})


class DeadlineExceededError(DeployClientError):
    """Raised when the caller's overall deadline elapses while still polling."""

    def __init__(self, job_id: str, timeout: float) -> None:
        """
        Initialize deadline exceeded error.

        Args:
            job_id: Job that was still pending
            timeout: Overall deadline in seconds that elapsed
        """
        self.job_id = job_id
        self.timeout = timeout
        super().__init__(
            f"Deployment {job_id} did not complete within {timeout:g}s",
            {"job_id": job_id, "timeout": timeout},
        )


class JobFailedError(DeployClientError):
    """Raised when the remote job reached the terminal 'failed' state."""

    def __init__(self, job_id: str, status_message: str) -> None:
        """
        Initialize job failed error.

        Args:
            job_id: Job that failed
            status_message: Failure reason reported by the control plane
        """
        self.job_id = job_id
        self.status_message = status_message
        super().__init__(f"Deployment failed: {status_message}", {"job_id": job_id})


class OutputRetrievalError(DeployClientError):
    """
    Raised when a job succeeded but its outputs could not be obtained locally.

    The job itself is still 'succeeded' on the control plane; only the
    retrieval (fetch, decode, decrypt, parse) failed on this side.
    """

    def __init__(
        self,
        message: str,
        job_id: str,
        stage: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize output retrieval error.

        Args:
            message: Error message
            job_id: Job whose outputs were unavailable
            stage: Retrieval step that failed (fetch, decode, decrypt, parse)
            details: Additional context
        """
        self.job_id = job_id
        self.stage = stage
        details = details or {}
        details.update({"job_id": job_id, "stage": stage, "job_status": "succeeded"})
        super().__init__(message, details)


class KeyMaterialReleasedError(DeployClientError):
    """Raised when a key pair is used after its private half was released."""

    pass
