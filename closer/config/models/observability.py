"""Logging and metrics settings."""

from typing import Literal

from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    # "console" is for local development; deployed services log JSON lines.
    format: Literal["json", "console"] = "json"
    redact_pii: bool = Field(
        default=True,
        description="Mask phone numbers and email addresses before events are rendered",
    )


class MetricsConfig(BaseModel):
    enabled: bool = Field(default=True, description="Serve GET /metrics")


class ObservabilityConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
