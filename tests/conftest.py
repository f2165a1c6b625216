"""
Shared test fixtures and configuration for entire test suite.

Provides: fake clock, in-memory control plane served through
httpx.MockTransport, and clients/services wired to it.
Dependencies: pytest, httpx, pyrage
System role: Test infrastructure and fixture management
"""

import base64
import json
import uuid
from typing import Any

import httpx
import pytest

from deploy_client.application.services import CompletionWaiter, DeploymentService, JobSubmitter
from deploy_client.boundary.control_plane import ControlPlaneClient
from deploy_client.core.key_exchange import encrypt_for

API_URL = "https://cp.test"
ORG_ID = "acme"
CREATED_AT = "2025-01-02T03:04:05Z"
COMPLETED_AT = "2025-01-02T03:09:00Z"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)


class FakeControlPlane:
    """
    In-memory control plane for the deployment endpoints.

    Each /wait request answers 408 for the first `pending_polls` requests of
    a job (or forever with `wait_forever`), then reports `final_status`.
    Outputs are encrypted for the recipient submitted with the job.
    """

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock
        self.poll_duration = 0.0
        self.pending_polls = 0
        self.wait_forever = False
        self.initial_status = "pending"
        self.final_status = "succeeded"
        self.status_message = ""
        self.outputs_document: Any = {}
        self.outputs_override: Any = None
        self.outputs_status_code = 200

        self.jobs: dict[str, dict[str, Any]] = {}
        self.recipients: dict[str, str] = {}
        self.idempotency: dict[str, str] = {}
        self.poll_counts: dict[str, int] = {}
        self.poll_times: list[float] = []
        self.requests: list[httpx.Request] = []
        self.create_bodies: list[dict[str, Any]] = []

    # -- helpers -----------------------------------------------------------

    def calls_to(self, suffix: str) -> int:
        return sum(1 for r in self.requests if r.url.path.endswith(suffix))

    def seed_job(self, recipient: str, status: str = "pending") -> str:
        job_id = str(uuid.uuid4())
        self.jobs[job_id] = {
            "id": job_id,
            "status": status,
            "status_message": "",
            "created_at": CREATED_AT,
            "completed_at": None,
            "runner_id": "runner-1",
        }
        self.recipients[job_id] = recipient
        return job_id

    # -- transport ---------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        prefix = f"/orgs/{ORG_ID}/deployments"
        path = request.url.path
        if not path.startswith(prefix):
            return httpx.Response(404, json={"error": "unknown path"})
        rest = path[len(prefix):].strip("/")

        if request.method == "POST" and rest == "":
            return self._create(request)
        job_id, _, action = rest.partition("/")
        if job_id not in self.jobs:
            return httpx.Response(404, json={"error": "deployment not found"})
        if action == "wait":
            return self._wait(job_id)
        if action == "encrypted-outputs":
            return self._outputs(job_id)
        if action == "":
            return httpx.Response(200, json=self.jobs[job_id])
        return httpx.Response(404, json={"error": "unknown action"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def _create(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.create_bodies.append(body)
        key = request.headers.get("Idempotency-Key", "")
        if key in self.idempotency:
            return httpx.Response(201, json=self.jobs[self.idempotency[key]])
        job_id = self.seed_job(body["encrypted_outputs_recipient"], status=self.initial_status)
        self.jobs[job_id].update(
            {"project_id": body["project_id"], "env_id": body["env_id"], "mode": body["mode"]}
        )
        self.idempotency[key] = job_id
        return httpx.Response(201, json=self.jobs[job_id])

    def _wait(self, job_id: str) -> httpx.Response:
        if self.clock is not None:
            self.poll_times.append(self.clock())
            self.clock.advance(self.poll_duration)
        self.poll_counts[job_id] = self.poll_counts.get(job_id, 0) + 1
        if self.wait_forever or self.poll_counts[job_id] <= self.pending_polls:
            return httpx.Response(408, json={"error": "still pending"})
        job = self.jobs[job_id]
        job.update(
            {
                "status": self.final_status,
                "status_message": self.status_message,
                "completed_at": COMPLETED_AT,
            }
        )
        return httpx.Response(200, json=job)

    def _outputs(self, job_id: str) -> httpx.Response:
        if self.outputs_status_code != 200:
            return httpx.Response(self.outputs_status_code, text="outputs unavailable")
        if self.outputs_override is not None:
            return httpx.Response(200, json=self.outputs_override)
        plaintext = json.dumps(self.outputs_document).encode("utf-8")
        ciphertext = encrypt_for(self.recipients[job_id], plaintext)
        return httpx.Response(200, json=base64.b64encode(ciphertext).decode("ascii"))


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at zero."""
    return FakeClock()


@pytest.fixture
def control_plane(clock: FakeClock) -> FakeControlPlane:
    """Provide an in-memory control plane bound to the fake clock."""
    return FakeControlPlane(clock)


@pytest.fixture
def client(control_plane: FakeControlPlane) -> ControlPlaneClient:
    """Provide a ControlPlaneClient talking to the fake control plane."""
    with ControlPlaneClient(
        api_url=API_URL,
        org_id=ORG_ID,
        auth_token="test-token",
        create_attempts=1,
        transport=control_plane.transport(),
    ) as cp_client:
        yield cp_client


@pytest.fixture
def submitter(client: ControlPlaneClient) -> JobSubmitter:
    return JobSubmitter(client)


@pytest.fixture
def waiter(client: ControlPlaneClient, clock: FakeClock) -> CompletionWaiter:
    """Provide a CompletionWaiter driven by the fake clock."""
    return CompletionWaiter(
        client,
        default_timeout=30.0,
        long_poll_timeout=10.0,
        clock=clock,
        sleep=clock.sleep,
    )


@pytest.fixture
def deployment_service(
    client: ControlPlaneClient, submitter: JobSubmitter, waiter: CompletionWaiter
) -> DeploymentService:
    return DeploymentService(client=client, submitter=submitter, waiter=waiter)
