"""Configuration models for the retry core.

This module provides the Pydantic-based retry policy shared by the executor
and the database manager, enabling dependency injection and testability.
"""

from datetime import timedelta

from pydantic import BaseModel, Field, field_validator

DEFAULT_RETRY_LIMIT = 5
DEFAULT_RETRY_DELAY = 25.0  # seconds


class RetryPolicy(BaseModel):
    """Fixed-delay retry policy.

    Attributes:
        max_attempts: Total number of attempts, the first one included
        delay: Seconds to wait between two attempts (never before the first)
    """

    max_attempts: int = Field(
        default=DEFAULT_RETRY_LIMIT,
        ge=1,
        description="Maximum number of attempts before the last error is raised"
    )

    delay: float = Field(
        default=DEFAULT_RETRY_DELAY,
        ge=0,
        description="Fixed wait in seconds between consecutive attempts"
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @field_validator("delay", mode="before")
    @classmethod
    def coerce_timedelta(cls, value):
        """Accept a timedelta and store it as seconds."""
        if isinstance(value, timedelta):
            return value.total_seconds()
        return value

    @classmethod
    def from_app_settings(cls, settings) -> "RetryPolicy":
        """Factory method to construct the policy from a DbRetrySettings instance.

        Args:
            settings: DbRetrySettings instance from core.settings

        Returns:
            RetryPolicy with values from app settings
        """
        return cls(
            max_attempts=settings.DBRETRY_RETRY_LIMIT,
            delay=settings.DBRETRY_RETRY_DELAY,
        )
