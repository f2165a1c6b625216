"""
Deployment job client.

Submits deployment jobs to a remote control plane, waits for them to finish,
and decrypts their outputs locally with an ephemeral key pair.
"""

from deploy_client.application.services import (
    CompletionWaiter,
    DeploymentResult,
    DeploymentService,
    JobSubmitter,
)
from deploy_client.core.key_exchange import KeyExchange, KeyPair
from deploy_client.models.deployment import Job, JobRequest, JobStatus, Mode

__all__ = [
    "CompletionWaiter",
    "DeploymentResult",
    "DeploymentService",
    "Job",
    "JobRequest",
    "JobStatus",
    "JobSubmitter",
    "KeyExchange",
    "KeyPair",
    "Mode",
]
