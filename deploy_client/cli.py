"""
Command line entry point.

Usage:
    # Deploy and wait for decrypted outputs
    python -m deploy_client deploy --project my-app --env dev --manifest manifest.yaml

    # Submit without waiting
    python -m deploy_client deploy --project my-app --env dev --manifest manifest.yaml --no-wait

    # Refresh a deployment
    python -m deploy_client get 3f1c...

Exit codes:
    0 - Success
    1 - Deployment failed on the control plane
    2 - Invalid arguments or input
    3 - Deadline exceeded while waiting
    4 - Deployment succeeded but outputs were unavailable
    5 - Client or API error
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from deploy_client.application.services import DeploymentService
from deploy_client.configs import get_settings
from deploy_client.core.exceptions import (
    DeadlineExceededError,
    DeployClientError,
    InvalidRequestError,
    JobFailedError,
    OutputRetrievalError,
)
from deploy_client.core.timestamps import format_rfc3339
from deploy_client.models.deployment import Job, Mode
from deploy_client.observability import configure_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_JOB_FAILED = 1
EXIT_USAGE = 2
EXIT_DEADLINE = 3
EXIT_OUTPUTS_UNAVAILABLE = 4
EXIT_ERROR = 5


def job_to_dict(job: Job) -> dict:
    """Display form of a job with RFC3339 timestamps."""
    return {
        "id": job.id,
        "status": job.status,
        "status_message": job.status_message,
        "created_at": format_rfc3339(job.created_at),
        "completed_at": format_rfc3339(job.completed_at),
        "runner_id": job.runner_id,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deploy_client",
        description="Submit deployments and retrieve their encrypted outputs",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    deploy = subparsers.add_parser("deploy", help="Submit a deployment")
    deploy.add_argument("--project", required=True, help="Project id")
    deploy.add_argument("--env", required=True, help="Environment id")
    deploy.add_argument("--manifest", required=True, type=Path, help="YAML/JSON manifest file")
    deploy.add_argument(
        "--mode",
        choices=[m.value for m in Mode],
        default=Mode.DEPLOY.value,
        help="Deployment mode (default: deploy)",
    )
    deploy.add_argument("--no-wait", action="store_true", help="Return right after submission")
    deploy.add_argument("--timeout", type=float, default=None, help="Wait deadline in seconds")

    get = subparsers.add_parser("get", help="Show the current state of a deployment")
    get.add_argument("job_id", help="Deployment id")
    return parser


def _run(args: argparse.Namespace, service: DeploymentService) -> dict:
    if args.command == "get":
        return {"deployment": job_to_dict(service.get(args.job_id))}

    manifest = args.manifest.read_text(encoding="utf-8")
    result = service.deploy(
        project_id=args.project,
        env_id=args.env,
        manifest=manifest,
        mode=args.mode,
        wait_for=not args.no_wait,
        timeout=args.timeout,
    )
    payload = {"deployment": job_to_dict(result.job)}
    if not args.no_wait:
        payload["outputs"] = result.outputs
    return payload


def main(argv: Sequence[str] | None = None, service: DeploymentService | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging("DEBUG" if settings.debug else settings.log_level)

    try:
        if service is None:
            service = DeploymentService.from_settings(settings)
        payload = _run(args, service)
    except (InvalidRequestError, OSError, ValueError) as e:
        logger.error(f"{__name__}:main - {e}")
        return EXIT_USAGE
    except JobFailedError as e:
        logger.error(f"{__name__}:main - {e.message}")
        return EXIT_JOB_FAILED
    except DeadlineExceededError as e:
        logger.error(f"{__name__}:main - {e.message}")
        return EXIT_DEADLINE
    except OutputRetrievalError as e:
        logger.error(f"{__name__}:main - {e}")
        return EXIT_OUTPUTS_UNAVAILABLE
    except DeployClientError as e:
        logger.error(f"{__name__}:main - {e}")
        return EXIT_ERROR

    json.dump(payload, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return EXIT_OK
