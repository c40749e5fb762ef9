"""
Health check module for the session store.

This module provides a health check service reporting whether the
session store's Redis backend is reachable, with response time metrics.
"""

from health.service import (
    HealthCheckService,
    HealthStatus,
    DependencyHealth,
)

__all__ = [
    "HealthCheckService",
    "HealthStatus",
    "DependencyHealth",
]
