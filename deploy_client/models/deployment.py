"""
Deployment domain models and schemas.

Request and response shapes exchanged with the control plane.

Dependencies: pydantic
System role: Deployment job API contracts
"""

import base64
import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from deploy_client.core.exceptions import InvalidRequestError

IDENTIFIER_PATTERN = r"^[a-z](?:-?[a-z0-9]+)+$"


class Mode(str, Enum):
    """Execution mode of a deployment."""

    DEPLOY = "deploy"
    PLAN_ONLY = "plan_only"


class JobStatus(str, Enum):
    """Known deployment statuses. Only SUCCEEDED and FAILED are terminal."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class JobRequest(BaseModel):
    """Immutable input for a single deployment submission."""

    model_config = ConfigDict(frozen=True)

    project_id: str = Field(pattern=IDENTIFIER_PATTERN, description="Target project")
    env_id: str = Field(pattern=IDENTIFIER_PATTERN, description="Target environment")
    manifest: str = Field(description="YAML or JSON encoded manifest text")
    mode: Mode = Field(default=Mode.DEPLOY)
    idempotency_key: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique per submission attempt; reused by transport retries",
    )
    outputs_recipient: str = Field(description="age recipient for encrypted outputs")

    @classmethod
    def build(
        cls,
        project_id: str,
        env_id: str,
        manifest: str,
        outputs_recipient: str,
        mode: Mode | str = Mode.DEPLOY,
    ) -> "JobRequest":
        """
        Build a request with a fresh idempotency key.

        Raises:
            InvalidRequestError: If an identifier or the mode is invalid
        """
        try:
            return cls(
                project_id=project_id,
                env_id=env_id,
                manifest=manifest,
                mode=mode,
                outputs_recipient=outputs_recipient,
            )
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            raise InvalidRequestError(
                f"Invalid {field}: {first['msg']}",
                field=field,
            ) from e


class Job(BaseModel):
    """Deployment record as reported by the control plane."""

    model_config = ConfigDict(extra="ignore")

    id: str
    status: str
    status_message: str = ""
    created_at: datetime
    completed_at: datetime | None = None
    runner_id: str | None = None
    project_id: str | None = None
    env_id: str | None = None
    mode: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.SUCCEEDED.value, JobStatus.FAILED.value)

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.SUCCEEDED.value

    @property
    def failed(self) -> bool:
        return self.status == JobStatus.FAILED.value


class EncryptedOutputs(BaseModel):
    """Base64-encoded age ciphertext holding the job outputs."""

    raw: str

    def ciphertext(self) -> bytes:
        """
        Decode the base64 payload.

        Raises:
            binascii.Error: If the payload is not valid base64
        """
        return base64.b64decode(self.raw, validate=True)
