"""
Core business logic module.

Contains the exception hierarchy, key exchange, manifest parsing and the
completion state machine. No network access happens here.
"""

from deploy_client.core.exceptions import (
    ApiError,
    ClientError,
    DeadlineExceededError,
    DeployClientError,
    InvalidRequestError,
    JobFailedError,
    JobNotFoundError,
    KeyMaterialReleasedError,
    ManifestParseError,
    OutputRetrievalError,
)
from deploy_client.core.key_exchange import KeyExchange, KeyPair, encrypt_for
from deploy_client.core.manifest import parse_manifest

__all__ = [
    # Exceptions
    "ApiError",
    "ClientError",
    "DeadlineExceededError",
    "DeployClientError",
    "InvalidRequestError",
    "JobFailedError",
    "JobNotFoundError",
    "KeyMaterialReleasedError",
    "ManifestParseError",
    "OutputRetrievalError",
    # Business logic
    "KeyExchange",
    "KeyPair",
    "encrypt_for",
    "parse_manifest",
]
