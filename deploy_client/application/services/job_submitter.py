"""
Job submitter.

Parses the manifest locally and sends exactly one creation request carrying
the idempotency key and the outputs recipient.

Dependencies: deploy_client.boundary.control_plane, deploy_client.core.manifest
System role: Submission phase of a deployment
"""

import logging

from deploy_client.boundary.control_plane import ControlPlaneClient
from deploy_client.core.manifest import parse_manifest
from deploy_client.models.deployment import Job, JobRequest
from deploy_client.observability import log_with_context

logger = logging.getLogger(__name__)


class JobSubmitter:
    """Submits deployment jobs. Never sees private key material."""

    def __init__(self, client: ControlPlaneClient) -> None:
        """
        Initialize job submitter.

        Args:
            client: Control plane client used for the creation request
        """
        self.client = client

    def submit(self, request: JobRequest) -> Job:
        """
        Submit a deployment job.

        The manifest is parsed before any network activity; a parse failure
        never reaches the control plane.

        Args:
            request: Job request including idempotency key and recipient

        Returns:
            Job: Created job with the status reported by the control plane

        Raises:
            ManifestParseError: If the manifest is not a YAML/JSON mapping
            ClientError: On transport failure
            ApiError: If the control plane does not answer 201
        """
        manifest = parse_manifest(request.manifest)
        body = {
            "project_id": request.project_id,
            "env_id": request.env_id,
            "manifest": manifest,
            "mode": request.mode.value,
            "encrypted_outputs_recipient": request.outputs_recipient,
        }

        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:submit - Creating deployment",
            project_id=request.project_id,
            env_id=request.env_id,
            mode=request.mode.value,
            manifest=manifest,
            idempotency_key=request.idempotency_key,
        )
        job = self.client.create_deployment(body, request.idempotency_key)
        logger.info(
            f"{__name__}:submit - Deployment {job.id} created with status {job.status}",
            extra={"job_id": job.id},
        )
        return job
