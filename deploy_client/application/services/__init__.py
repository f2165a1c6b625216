"""Service orchestrators."""

from .completion_waiter import CompletionWaiter
from .deployment_service import DeploymentResult, DeploymentService
from .job_submitter import JobSubmitter

__all__ = [
    "CompletionWaiter",
    "DeploymentResult",
    "DeploymentService",
    "JobSubmitter",
]
