"""
Completion waiter configuration settings.

Timeouts that bound the long-poll loop and the individual HTTP requests.

Dependencies: pydantic_settings
System role: Deadline and long-poll tuning
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WaiterSettings(BaseSettings):
    """Settings for waiting on deployment completion."""

    model_config = SettingsConfigDict(
        env_prefix="DEPLOY_WAIT_",
        case_sensitive=False,
        extra="ignore",
    )

    default_timeout: float = Field(
        default=600.0,
        gt=0,
        description="Overall deadline in seconds when the caller supplies none",
    )
    long_poll_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Upper bound in seconds for a single long-poll request",
    )
    min_poll_interval: float = Field(
        default=0.0,
        ge=0,
        description="Minimum seconds between poll requests (0 re-queries immediately)",
    )
    connect_timeout: float = Field(
        default=10.0,
        gt=0,
        description="TCP connect timeout in seconds for every request",
    )
