"""Logging and metrics configuration models."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "console"]


class LoggingConfig(BaseModel):
    """structlog output settings."""

    level: LogLevel = Field(default="INFO", description="Minimum level emitted")
    format: LogFormat = Field(
        default="json",
        description="json for log shippers, console for local development",
    )
    redact_secrets: bool = Field(
        default=True,
        description="Mask values whose key or property name looks like a secret",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, value: Any) -> Any:
        # CONFHELM_OBSERVABILITY__LOGGING__LEVEL=debug is accepted
        return value.upper() if isinstance(value, str) else value


class MetricsConfig(BaseModel):
    enabled: bool = Field(
        default=True,
        description="Pre-register Prometheus series at bootstrap",
    )


class ObservabilityConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
