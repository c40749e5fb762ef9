"""
Helpers for reading and (de)serializing session records.

A session record is a plain JSON object. Authenticated flows store the
user identity under ``record["passport"]["user"]`` and the cookie
settings, including ``maxAge`` in milliseconds, under ``record["cookie"]``.
"""

import json
import math
from typing import Any, Optional, Union

from errors.exceptions import DecodeError, EncodeError

IDENTITY_FIELD = "passport"
USER_FIELD = "user"
COOKIE_FIELD = "cookie"
MAX_AGE_FIELD = "maxAge"


def extract_user_id(record: Any) -> Optional[Any]:
    """
    Return the authenticated user id carried by a record, if any.

    A record whose identity sub-structure is missing, or whose user
    field is missing, ``None`` or empty, has no user identity. User ids
    must be scalars (a string or a number) since they become part of the
    index key; an object, list or boolean is treated as no identity.
    """
    if not isinstance(record, dict):
        return None
    identity = record.get(IDENTITY_FIELD)
    if not isinstance(identity, dict):
        return None
    user = identity.get(USER_FIELD)
    if isinstance(user, bool) or not isinstance(user, (str, int, float)):
        return None
    if user == "":
        return None
    return user


def cookie_max_age(record: dict[str, Any]) -> Optional[Union[int, float]]:
    """Return the cookie ``maxAge`` hint in milliseconds, or None."""
    cookie = record.get(COOKIE_FIELD)
    if not isinstance(cookie, dict):
        return None
    max_age = cookie.get(MAX_AGE_FIELD)
    # bool is an int subclass; a flag is not a duration
    if isinstance(max_age, bool) or not isinstance(max_age, (int, float)):
        return None
    if not math.isfinite(max_age):
        return None
    return max_age


def encode_record(record: dict[str, Any]) -> str:
    """
    Serialize a session record to JSON text.

    Raises:
        EncodeError: If the record holds values JSON cannot represent.
    """
    try:
        return json.dumps(record, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise EncodeError(
            f"Session record is not JSON serializable: {e}",
        ) from e


def decode_record(raw: Union[str, bytes], key: Optional[str] = None) -> dict[str, Any]:
    """
    Deserialize stored JSON text into a session record.

    Args:
        raw: The stored payload.
        key: The Redis key the payload was read from, for error context.

    Raises:
        DecodeError: If the payload is not JSON or not a JSON object.
    """
    details = {"key": key} if key is not None else None
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError, TypeError) as e:
        raise DecodeError(f"Stored session payload is not valid JSON: {e}", details) from e

    if not isinstance(data, dict):
        raise DecodeError(
            f"Stored session payload is a JSON {type(data).__name__}, not an object",
            details,
        )
    return data
