"""
Error code catalog for the session store.

This module defines the error codes raised by the store: backend
failures, payload encode/decode failures, configuration problems and
unexpected internal errors.

A missing session is deliberately absent from this catalog: the store
reports it as a ``None`` result, never as an error.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used by the session store.

    Each error code maps to a default HTTP status code so host
    applications can translate store failures into responses:
    - Backend errors (5xx): Redis unreachable or command failed
    - Payload errors (5xx): stored or supplied session data unusable
    - Configuration errors (5xx): invalid store settings
    """

    # Backend errors
    SESSION_STORE_UNAVAILABLE = "SESSION_STORE_UNAVAILABLE"
    """Redis unavailable or a command failed (HTTP 503)"""

    # Payload errors
    SESSION_DECODE_ERROR = "SESSION_DECODE_ERROR"
    """Stored payload is not a JSON object (HTTP 500)"""

    SESSION_ENCODE_ERROR = "SESSION_ENCODE_ERROR"
    """Session record cannot be serialized to JSON (HTTP 500)"""

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Store settings are missing or invalid (HTTP 500)"""

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Unexpected error (HTTP 500)"""


# Mapping of error codes to their default HTTP status codes
ERROR_CODE_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.SESSION_STORE_UNAVAILABLE: 503,
    ErrorCode.SESSION_DECODE_ERROR: 500,
    ErrorCode.SESSION_ENCODE_ERROR: 500,
    ErrorCode.CONFIGURATION_ERROR: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


def get_default_status_code(error_code: ErrorCode) -> int:
    """
    Get the default HTTP status code for an error code.

    Args:
        error_code: The error code to look up

    Returns:
        The default HTTP status code for the error code
    """
    return ERROR_CODE_STATUS_MAP.get(error_code, 500)
