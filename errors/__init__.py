"""
Error handling module for the session store.

This module provides structured error handling with:
- ErrorCode enum for standardized error codes
- AppException base class carrying code, message and details
- BackendError, DecodeError and EncodeError for the store's failure modes
"""

from errors.codes import ErrorCode
from errors.exceptions import (
    AppException,
    BackendError,
    DecodeError,
    EncodeError,
    backend_error,
    decode_error,
    encode_error,
    internal_error,
)

__all__ = [
    "ErrorCode",
    "AppException",
    "BackendError",
    "DecodeError",
    "EncodeError",
    "backend_error",
    "decode_error",
    "encode_error",
    "internal_error",
]
