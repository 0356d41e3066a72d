"""Configuration model exports.

This module exports all configuration models for easy access:

    from closer.config.models import ControlConfig, StorageConfig
"""

from closer.config.models.api import APIConfig
from closer.config.models.control import (
    ClassificationConfig,
    ControlConfig,
    GuardConfig,
    ProgressConfig,
    RateLimitConfig,
    RateLimitTierConfig,
    SummaryConfig,
)
from closer.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from closer.config.models.providers import ModelStepConfig, ProvidersConfig
from closer.config.models.storage import PostgresConfig, RedisConfig, StorageConfig

__all__ = [
    # API
    "APIConfig",
    # Control plane
    "ControlConfig",
    "RateLimitConfig",
    "RateLimitTierConfig",
    "ProgressConfig",
    "GuardConfig",
    "SummaryConfig",
    "ClassificationConfig",
    # Observability
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    # Providers
    "ModelStepConfig",
    "ProvidersConfig",
    # Storage
    "PostgresConfig",
    "RedisConfig",
    "StorageConfig",
]
