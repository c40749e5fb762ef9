"""
Session persistence on Redis.

This module provides the session store abstraction and its Redis
implementation, which also maintains a per-user index of session keys
so that every live session of an authenticated user can be listed.
"""

from session.store import SessionStore
from session.keys import KeyCodec, DEFAULT_KEY_PREFIX
from session.options import RedisConnectionOptions, parse_redis_url
from session.redis_store import RedisSessionStore, CONNECT_EVENT, DISCONNECT_EVENT
from session.ttl import DEFAULT_SESSION_TTL, derive_ttl
from session.factory import create_session_store

__all__ = [
    "SessionStore",
    "KeyCodec",
    "DEFAULT_KEY_PREFIX",
    "RedisConnectionOptions",
    "parse_redis_url",
    "RedisSessionStore",
    "CONNECT_EVENT",
    "DISCONNECT_EVENT",
    "DEFAULT_SESSION_TTL",
    "derive_ttl",
    "create_session_store",
]
