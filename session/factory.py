"""
Build a session store from application settings.
"""

from typing import Optional

from config.settings import Settings, get_settings
from session.options import RedisConnectionOptions, parse_redis_url
from session.redis_store import RedisSessionStore


def connection_options_from_settings(settings: Settings) -> RedisConnectionOptions:
    """
    Resolve connection options from settings.

    ``redis_url`` is parsed first; the individual ``redis_*`` fields then
    override whatever the URL supplied.
    """
    if settings.redis_url:
        options = parse_redis_url(settings.redis_url)
    else:
        options = RedisConnectionOptions()

    if settings.redis_host:
        options.host = settings.redis_host
    if settings.redis_port is not None:
        options.port = settings.redis_port
    if settings.redis_socket:
        options.socket_path = settings.redis_socket
    if settings.redis_username:
        options.username = settings.redis_username
    if settings.redis_password:
        options.password = settings.redis_password
    if settings.redis_db is not None:
        options.db = settings.redis_db
    return options


def create_session_store(settings: Optional[Settings] = None) -> RedisSessionStore:
    """
    Create a RedisSessionStore configured from settings.

    Args:
        settings: Settings to use; defaults to the cached application settings.

    Returns:
        A store that has not connected yet; call ``connect()`` at startup.
    """
    settings = settings or get_settings()
    return RedisSessionStore(
        prefix=settings.session_prefix,
        ttl=settings.session_ttl_seconds,
        default_ttl=settings.session_default_ttl_seconds,
        connection=connection_options_from_settings(settings),
    )
