"""
Unified client settings.

Aggregates all configuration modules into a single Settings class.

Dependencies: All config modules
System role: Central configuration aggregator for the client
"""

from functools import lru_cache

from pydantic import Field

from deploy_client.configs.base import BaseSettings
from deploy_client.configs.control_plane import ControlPlaneSettings
from deploy_client.configs.waiter import WaiterSettings


class Settings(BaseSettings):
    """Unified client settings aggregating all config modules."""

    control_plane: ControlPlaneSettings = Field(default_factory=ControlPlaneSettings)
    waiter: WaiterSettings = Field(default_factory=WaiterSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get client settings singleton.

    Environment variables are loaded once on first call.

    Returns:
        Settings: Client settings instance

    Usage:
        from deploy_client.configs import get_settings
        settings = get_settings()
    """
    return Settings()
