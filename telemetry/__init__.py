"""
Telemetry module for structured logging and observability.

This module provides:
- JSONFormatter for structured JSON log output
- TelemetryService for centralized logging and metrics
- Integration with OpenTelemetry for tracing Redis calls
"""

from telemetry.service import (
    JSONFormatter,
    TelemetryService,
    external_service_span,
    get_telemetry_service,
    initialize_telemetry,
    record_metric,
    set_request_id,
    get_request_id,
)

__all__ = [
    "JSONFormatter",
    "TelemetryService",
    "external_service_span",
    "get_telemetry_service",
    "initialize_telemetry",
    "record_metric",
    "set_request_id",
    "get_request_id",
]
