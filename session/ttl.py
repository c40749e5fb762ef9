"""
TTL derivation for session writes.

Precedence: an explicit store-level TTL, then the record's cookie
``maxAge`` (milliseconds), then the store's default TTL.
"""

import math
from datetime import timedelta
from typing import Any, Optional, Union

from session.record import cookie_max_age

TTLValue = Union[int, float, timedelta]

# One day, the fallback when neither a store TTL nor a cookie maxAge is set
DEFAULT_SESSION_TTL = timedelta(days=1)


def to_seconds(value: TTLValue) -> int:
    """Convert a TTL given as seconds or a timedelta to whole seconds."""
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    return int(value)


def derive_ttl(
    record: dict[str, Any],
    store_ttl: Optional[TTLValue] = None,
    default_ttl: TTLValue = DEFAULT_SESSION_TTL,
) -> int:
    """
    Compute the expiry in whole seconds for writing ``record``.

    Args:
        record: The session record being written.
        store_ttl: Store-level override; wins whenever it is set and non-zero.
        default_ttl: Used when neither the override nor a maxAge is present.

    Returns:
        The TTL in seconds. May be zero or negative when the cookie has
        already expired; callers must not write such a record.
    """
    if store_ttl:
        return to_seconds(store_ttl)

    max_age = cookie_max_age(record)
    if max_age is not None:
        return math.floor(max_age / 1000)

    return to_seconds(default_ttl)
