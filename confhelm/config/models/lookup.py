"""Service lookup configuration models."""

from pydantic import BaseModel, Field


class LookupConfig(BaseModel):
    """Polling behaviour for blocking service lookups."""

    poll_interval_ms: int = Field(
        default=20,
        gt=0,
        description="Delay between registry polls while waiting (milliseconds)",
    )
    default_timeout_ms: int = Field(
        default=5000,
        ge=0,
        description="Wait timeout used when the caller does not pass one (milliseconds)",
    )
