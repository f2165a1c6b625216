"""
Control plane connection settings.

Resolves API URL, organization and auth token from environment variables,
falling back to an optional YAML config file and finally to defaults.

Dependencies: pydantic, pydantic_settings, yaml
System role: Control plane endpoint and credential configuration
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "https://api.humanitec.dev"
DEFAULT_CONFIG_FILE = Path.home() / ".config" / "hctl" / "config.yaml"


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Read the YAML config file shared with the command line tooling.

    A missing file is not an error and yields an empty mapping.

    Args:
        path: Path to the YAML config file

    Returns:
        dict[str, Any]: Parsed keys (api_url, default_org_id, token)

    Raises:
        ValueError: If the file exists but is not a YAML mapping
    """
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


class ControlPlaneSettings(BaseSettings):
    """Control plane endpoint and credentials."""

    model_config = SettingsConfigDict(
        env_prefix="DEPLOY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_url: str | None = Field(
        default=None,
        description="Control plane API URL prefix",
    )
    org_id: str | None = Field(
        default=None,
        description="Organization that owns the deployments",
    )
    auth_token: SecretStr | None = Field(
        default=None,
        description="Bearer token sent with every request",
    )
    config_file: Path = Field(
        default=DEFAULT_CONFIG_FILE,
        description="YAML file consulted for values not set in the environment",
    )

    def _file_values(self) -> dict[str, Any]:
        return read_config_file(self.config_file)

    def resolved(self) -> "ResolvedControlPlane":
        """
        Merge environment values over config file values over defaults.

        Returns:
            ResolvedControlPlane: Concrete connection parameters
        """
        file_values = self._file_values()
        token = self.auth_token.get_secret_value() if self.auth_token else file_values.get("token")
        return ResolvedControlPlane(
            api_url=(self.api_url or file_values.get("api_url") or DEFAULT_API_URL).rstrip("/"),
            org_id=self.org_id or file_values.get("default_org_id") or "",
            auth_token=token or None,
        )


class ResolvedControlPlane:
    """Concrete connection parameters after precedence has been applied."""

    def __init__(self, api_url: str, org_id: str, auth_token: str | None) -> None:
        self.api_url = api_url
        self.org_id = org_id
        self.auth_token = auth_token

    def __repr__(self) -> str:
        return f"ResolvedControlPlane(api_url={self.api_url!r}, org_id={self.org_id!r})"
