"""
Control plane HTTP client.

Thin wrapper over the deployment endpoints: create, long-poll for completion,
fetch encrypted outputs, and read a deployment. Maps transport failures to
ClientError and unexpected status codes to ApiError.

Dependencies: httpx, tenacity, deploy_client.configs, deploy_client.core.exceptions
System role: Control plane boundary for deployment jobs
"""

import logging
from typing import Any

import httpx
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from deploy_client.configs.settings import Settings
from deploy_client.core.completion import RequestTimedOut
from deploy_client.core.exceptions import ApiError, ClientError, JobNotFoundError
from deploy_client.models.deployment import EncryptedOutputs, Job

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = frozenset({502, 503, 504})


class _TransientStatus(Exception):
    """Gateway-level status worth retrying with the same idempotency key."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"HTTP {response.status_code}")


class ControlPlaneClient:
    """
    Client for the deployment endpoints of one organization.

    Creation is retried on transport errors and gateway statuses; this is
    safe because every attempt carries the same Idempotency-Key. Status and
    output reads are never retried here.
    """

    def __init__(
        self,
        api_url: str,
        org_id: str,
        auth_token: str | None = None,
        connect_timeout: float = 10.0,
        create_attempts: int = 3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize control plane client.

        Args:
            api_url: API URL prefix
            org_id: Organization that owns the deployments
            auth_token: Bearer token, sent on every request when set
            connect_timeout: TCP connect timeout in seconds
            create_attempts: Total attempts for deployment creation
            transport: Optional httpx transport (tests inject a MockTransport)

        Raises:
            ValueError: If org_id is empty
        """
        if not org_id:
            raise ValueError("org_id is not configured")
        self._org_id = org_id
        self._connect_timeout = connect_timeout

        headers = {"Accept": "application/json"}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"

        self._http = httpx.Client(
            base_url=api_url,
            headers=headers,
            timeout=httpx.Timeout(60.0, connect=connect_timeout),
            transport=transport,
        )
        self._create_retrying = Retrying(
            retry=retry_if_exception_type((httpx.TransportError, _TransientStatus)),
            stop=stop_after_attempt(create_attempts),
            wait=wait_exponential_jitter(initial=0.5, max=5, jitter=0.5),
            before_sleep=lambda retry_state: logger.warning(
                f"{__name__}:create_deployment - Retry "
                f"{retry_state.attempt_number}/{create_attempts} after transient failure"
            ),
            reraise=True,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.BaseTransport | None = None,
    ) -> "ControlPlaneClient":
        """Build a client from resolved control plane settings."""
        resolved = settings.control_plane.resolved()
        return cls(
            api_url=resolved.api_url,
            org_id=resolved.org_id,
            auth_token=resolved.auth_token,
            connect_timeout=settings.waiter.connect_timeout,
            transport=transport,
        )

    def _deployments_path(self, job_id: str | None = None) -> str:
        path = f"/orgs/{self._org_id}/deployments"
        return f"{path}/{job_id}" if job_id else path

    def _post_create(self, body: dict[str, Any], idempotency_key: str) -> httpx.Response:
        response = self._http.post(
            self._deployments_path(),
            json=body,
            headers={"Idempotency-Key": idempotency_key},
        )
        if response.status_code in TRANSIENT_STATUS_CODES:
            raise _TransientStatus(response)
        return response

    def create_deployment(self, body: dict[str, Any], idempotency_key: str) -> Job:
        """
        Create a deployment.

        Args:
            body: Creation payload (targets, manifest, mode, outputs recipient)
            idempotency_key: Key collapsing retried attempts into one job

        Returns:
            Job: Created deployment, status as reported

        Raises:
            ClientError: On transport or serialization failure
            ApiError: If the response status is not 201
        """
        try:
            response = self._create_retrying(self._post_create, body, idempotency_key)
        except _TransientStatus as e:
            response = e.response
        except httpx.TransportError as e:
            raise ClientError(f"Unable to create deployment, got error: {e}") from e
        except (TypeError, ValueError) as e:
            raise ClientError(f"Unable to encode deployment request: {e}") from e

        if response.status_code != 201:
            raise ApiError(
                f"Unable to create deployment, unexpected status code: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return self._parse_job(response, "create_deployment")

    def wait_for_completion(self, job_id: str, timeout: float) -> Job | RequestTimedOut:
        """
        Issue one long-poll request for a deployment.

        Args:
            job_id: Deployment id
            timeout: Seconds this request may take before it is abandoned

        Returns:
            Job | RequestTimedOut: Current record, or a marker that the
                request ended without one (HTTP 408 or local request timeout)

        Raises:
            ClientError: On non-timeout transport failure
            ApiError: On any status other than 200 and 408
        """
        request_timeout = httpx.Timeout(timeout, connect=min(self._connect_timeout, timeout))
        try:
            response = self._http.get(
                f"{self._deployments_path(job_id)}/wait",
                timeout=request_timeout,
            )
        except httpx.TimeoutException:
            return RequestTimedOut()
        except httpx.TransportError as e:
            raise ClientError(f"Unable to wait for deployment to complete, got error: {e}") from e

        if response.status_code == 408:
            return RequestTimedOut(status_code=408)
        if response.status_code != 200:
            raise ApiError(
                "Unable to wait for deployment to complete, "
                f"unexpected status code: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return self._parse_job(response, "wait_for_completion")

    def get_encrypted_outputs(self, job_id: str) -> EncryptedOutputs:
        """
        Fetch the encrypted outputs of a succeeded deployment.

        Raises:
            ClientError: On transport failure or a body that is not a JSON string
            ApiError: If the response status is not 200
        """
        try:
            response = self._http.get(f"{self._deployments_path(job_id)}/encrypted-outputs")
        except httpx.TransportError as e:
            raise ClientError(f"Unable to read deployment outputs, got error: {e}") from e

        if response.status_code != 200:
            raise ApiError(
                f"Unable to read deployment outputs, unexpected status code: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            raw = response.json()
        except ValueError as e:
            raise ClientError(f"Unable to parse deployment outputs response: {e}") from e
        if not isinstance(raw, str):
            raise ClientError(
                f"Unexpected deployment outputs payload of type {type(raw).__name__}"
            )
        return EncryptedOutputs(raw=raw)

    def get_deployment(self, job_id: str) -> Job:
        """
        Read the current record of a deployment.

        Raises:
            JobNotFoundError: If the deployment does not exist
            ClientError: On transport failure
            ApiError: On any other non-200 status
        """
        try:
            response = self._http.get(self._deployments_path(job_id))
        except httpx.TransportError as e:
            raise ClientError(f"Unable to read deployment, got error: {e}") from e

        if response.status_code == 404:
            raise JobNotFoundError(job_id, body=response.text)
        if response.status_code != 200:
            raise ApiError(
                f"Unable to read deployment, unexpected status code: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return self._parse_job(response, "get_deployment")

    def _parse_job(self, response: httpx.Response, operation: str) -> Job:
        try:
            return Job.model_validate(response.json())
        except ValueError as e:
            # pydantic.ValidationError and JSON decode errors are both ValueErrors
            logger.error(f"{__name__}:{operation} - Malformed deployment record: {e}")
            raise ClientError(f"Unable to parse deployment record: {e}") from e

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ControlPlaneClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
