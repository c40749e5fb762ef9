"""
Connection options for the Redis backend.

Options can be given field by field or parsed from a single
``redis://[user[:password]@]host[:port][/db]`` URL.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import unquote, urlsplit

from config.settings import ConfigurationError

DEFAULT_REDIS_HOST = "localhost"
DEFAULT_REDIS_PORT = 6379


@dataclass
class RedisConnectionOptions:
    """
    Parameters for opening the backend connection.

    Attributes:
        host: Redis hostname
        port: Redis TCP port
        socket_path: Unix socket path; takes precedence over host/port
        username: ACL username sent with AUTH
        password: Password sent with AUTH on every (re)connect
        db: Logical database selected on every (re)connect
    """
    host: str = DEFAULT_REDIS_HOST
    port: int = DEFAULT_REDIS_PORT
    socket_path: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    db: Optional[int] = None


def _parse_db(value: str, source: str) -> Optional[int]:
    value = value.strip()
    if not value:
        return None
    if not value.isdigit():
        raise ConfigurationError(
            "Invalid Redis database index",
            invalid_fields={"db": f"{value!r} in {source!r} is not a non-negative integer"},
        )
    return int(value)


def parse_redis_url(url: str) -> RedisConnectionOptions:
    """
    Parse a connection URL into connection options.

    Only the ``redis:`` scheme is interpreted; any other URL yields the
    default options. The auth part is split into user and password on the
    first colon, and the path (without its leading slash) names the db.

    Raises:
        ConfigurationError: If the port or db index is malformed.
    """
    options = RedisConnectionOptions()
    parts = urlsplit(url)
    if parts.scheme != "redis":
        return options

    if parts.username:
        options.username = unquote(parts.username)
    if parts.password is not None:
        options.password = unquote(parts.password)
    if parts.hostname:
        options.host = parts.hostname
    try:
        port = parts.port
    except ValueError as e:
        raise ConfigurationError(
            "Invalid Redis port",
            invalid_fields={"port": f"{url!r}: {e}"},
        ) from e
    if port is not None:
        options.port = port
    if parts.path:
        options.db = _parse_db(parts.path[1:] if parts.path.startswith("/") else parts.path, url)
    return options


def build_client(
    options: RedisConnectionOptions,
    redis_connect_func: Optional[Callable[[Any], Awaitable[None]]] = None,
) -> Any:
    """
    Create an async Redis client for the given options.

    Args:
        options: Where and how to connect.
        redis_connect_func: Called with each new connection in place of
            the client's default handshake; used to observe reconnects.

    Returns:
        A ``redis.asyncio.Redis`` client returning raw ``bytes`` responses;
        payloads are decoded by the store so invalid UTF-8 surfaces as
        a DecodeError.
    """
    import redis.asyncio as redis

    kwargs: dict[str, Any] = {
        "db": options.db or 0,
        "username": options.username,
        "password": options.password,
        "decode_responses": False,
        "redis_connect_func": redis_connect_func,
    }
    if options.socket_path:
        return redis.Redis(unix_socket_path=options.socket_path, **kwargs)
    return redis.Redis(host=options.host, port=options.port, **kwargs)
