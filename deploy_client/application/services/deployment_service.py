"""
Deployment service orchestrator.

Runs the full workflow for one deployment: generate an ephemeral key pair,
submit the job with its public half, optionally wait for completion, and
decrypt the outputs. The key pair never outlives the call.

Dependencies: deploy_client.application.services, deploy_client.core
System role: Entry point for deploying and refreshing jobs
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from deploy_client.application.services.completion_waiter import CompletionWaiter
from deploy_client.application.services.job_submitter import JobSubmitter
from deploy_client.boundary.control_plane import ControlPlaneClient
from deploy_client.configs.settings import Settings
from deploy_client.core.completion import unwrap
from deploy_client.core.key_exchange import KeyExchange
from deploy_client.models.deployment import Job, JobRequest, Mode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeploymentResult:
    """Final job record and, when waited for, its decrypted outputs."""

    job: Job
    outputs: Any = None


class DeploymentService:
    """
    Deployment service orchestrator.

    Each call owns its own key pair, job id and deadline; nothing mutable is
    shared between concurrent calls.
    """

    def __init__(
        self,
        client: ControlPlaneClient,
        submitter: JobSubmitter | None = None,
        waiter: CompletionWaiter | None = None,
    ) -> None:
        """
        Initialize deployment service.

        Args:
            client: Control plane client
            submitter: Optional submitter (defaults to one over client)
            waiter: Optional waiter (defaults to one over client)
        """
        self.client = client
        self.submitter = submitter or JobSubmitter(client)
        self.waiter = waiter or CompletionWaiter(client)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.BaseTransport | None = None,
    ) -> "DeploymentService":
        """Build the service and its collaborators from settings."""
        client = ControlPlaneClient.from_settings(settings, transport=transport)
        return cls(client=client, waiter=CompletionWaiter.from_settings(client, settings))

    def deploy(
        self,
        project_id: str,
        env_id: str,
        manifest: str,
        mode: Mode | str = Mode.DEPLOY,
        wait_for: bool = True,
        timeout: float | None = None,
    ) -> DeploymentResult:
        """
        Submit a deployment and optionally wait for its outputs.

        With wait_for=False the call returns right after submission; the key
        pair is discarded, so outputs of that job can never be decrypted.

        Args:
            project_id: Target project
            env_id: Target environment
            manifest: YAML or JSON manifest text
            mode: 'deploy' or 'plan_only'
            wait_for: Whether to wait for completion
            timeout: Overall wait deadline in seconds

        Returns:
            DeploymentResult: Job record and outputs (None when not waiting)

        Raises:
            InvalidRequestError: Bad identifiers, mode or manifest
            ClientError, ApiError: Submission or polling failures
            DeadlineExceededError, JobFailedError, OutputRetrievalError:
                see CompletionWaiter.wait
        """
        with KeyExchange.generate() as key_pair:
            request = JobRequest.build(
                project_id=project_id,
                env_id=env_id,
                manifest=manifest,
                mode=mode,
                outputs_recipient=key_pair.recipient,
            )
            job = self.submitter.submit(request)
            if not wait_for:
                logger.info(f"{__name__}:deploy - Not waiting for deployment {job.id}")
                return DeploymentResult(job=job)

            outcome = self.waiter.run(job.id, key_pair, timeout)

        outputs = unwrap(outcome)
        return DeploymentResult(job=outcome.job, outputs=outputs)

    def get(self, job_id: str) -> Job:
        """
        Refresh a deployment record (status, message, completion time).

        Raises:
            JobNotFoundError: If the deployment no longer exists
        """
        return self.client.get_deployment(job_id)
