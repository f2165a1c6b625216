"""Domain models for deployment jobs."""

from deploy_client.models.deployment import (
    EncryptedOutputs,
    Job,
    JobRequest,
    JobStatus,
    Mode,
)

__all__ = ["EncryptedOutputs", "Job", "JobRequest", "JobStatus", "Mode"]
