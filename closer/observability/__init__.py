"""Observability: structured logging and Prometheus metrics.

Provides standardized observability primitives using structlog for logging
and prometheus_client for metrics.
"""
