"""
Exception classes for the session store.

This module provides the AppException base class, the store's error
taxonomy (BackendError, DecodeError, EncodeError) and convenience
factory functions for creating them.
"""

from typing import Any, Optional

from errors.codes import ErrorCode, get_default_status_code


class AppException(Exception):
    """
    Base exception class for all store errors.

    This exception provides structured error information including:
    - error_code: A standardized error code from the ErrorCode enum
    - message: A human-readable error message
    - status_code: The HTTP status code a host application should return
    - details: Optional additional context (e.g., the affected key)

    Example:
        raise AppException(
            error_code=ErrorCode.SESSION_STORE_UNAVAILABLE,
            message="Redis GET failed",
            details={"key": "sess:abc"}
        )
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None
    ):
        """
        Initialize an AppException.

        Args:
            error_code: The error code from the ErrorCode enum
            message: A human-readable error message
            status_code: The HTTP status code (defaults to the error code's default)
            details: Optional dictionary with additional error context
        """
        self.error_code = error_code
        self.message = message
        self.status_code = status_code or get_default_status_code(error_code)
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary for JSON serialization.

        Returns:
            Dictionary containing error_code, message, and details
        """
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, status_code={self.status_code}, "
            f"details={self.details!r})"
        )


class BackendError(AppException):
    """Redis transport or command failure. Never retried by the store."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(
            error_code=ErrorCode.SESSION_STORE_UNAVAILABLE,
            message=message,
            details=details
        )


class DecodeError(AppException):
    """A stored payload could not be deserialized into a session record."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(
            error_code=ErrorCode.SESSION_DECODE_ERROR,
            message=message,
            details=details
        )


class EncodeError(AppException):
    """A session record could not be serialized for storage."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(
            error_code=ErrorCode.SESSION_ENCODE_ERROR,
            message=message,
            details=details
        )


# Convenience factory functions for common error types

def backend_error(
    message: str = "Session store unavailable",
    details: Optional[dict[str, Any]] = None
) -> BackendError:
    """Create a backend error exception."""
    return BackendError(message=message, details=details)


def decode_error(
    message: str = "Stored session payload could not be decoded",
    details: Optional[dict[str, Any]] = None
) -> DecodeError:
    """Create a decode error exception."""
    return DecodeError(message=message, details=details)


def encode_error(
    message: str = "Session record could not be encoded",
    details: Optional[dict[str, Any]] = None
) -> EncodeError:
    """Create an encode error exception."""
    return EncodeError(message=message, details=details)


def internal_error(
    message: str = "An unexpected error occurred",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create an internal error exception."""
    return AppException(
        error_code=ErrorCode.INTERNAL_ERROR,
        message=message,
        details=details
    )
