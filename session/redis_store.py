"""
Redis-based session store implementation.

Session records are stored as JSON strings under ``<prefix><sid>`` with
an expiry. Every write of an authenticated session also adds the full
session key to the user's index set ``<prefix>user_sessions:<uid>`` so
that all live sessions of a user can be listed.

The index is a hint, not a source of truth: sessions expire or are
destroyed without touching it. Stale members are pruned lazily when
``list_user_sessions`` finds that they no longer resolve to a logged-in
session.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    RedisError,
    TimeoutError as RedisTimeoutError,
)

from errors.exceptions import BackendError, DecodeError
from session.keys import DEFAULT_KEY_PREFIX, KeyCodec
from session.options import RedisConnectionOptions, build_client, parse_redis_url
from session.record import decode_record, encode_record, extract_user_id
from session.store import SessionStore
from session.ttl import DEFAULT_SESSION_TTL, TTLValue, derive_ttl
from telemetry.service import external_service_span, record_metric

logger = logging.getLogger(__name__)

CONNECT_EVENT = "connect"
DISCONNECT_EVENT = "disconnect"

Listener = Callable[..., Any]


def _as_text(value: Union[str, bytes]) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisSessionStore(SessionStore):
    """
    Redis-backed session store with a per-user session index.

    A single instance is meant to be shared by every concurrent request
    of the host application. No locks or transactions are taken: each
    session key is only ever written by calls for that exact sid, so
    concurrent writers can at worst leave a stale or missing index
    entry, never a mixed payload. The store does not retry and does not
    impose timeouts of its own; both are left to the Redis client.

    Attributes:
        keys: Key codec holding the store prefix
        ttl: Store-level TTL override (seconds or timedelta), or None
        default_ttl: TTL used when neither the override nor a cookie
            maxAge is present (default: one day)
        connection_options: Options the client was built from, when the
            store built it
        client: ``redis.asyncio`` client (or compatible object)
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        *,
        prefix: str = DEFAULT_KEY_PREFIX,
        ttl: Optional[TTLValue] = None,
        default_ttl: TTLValue = DEFAULT_SESSION_TTL,
        connection: Optional[RedisConnectionOptions] = None,
        url: Optional[str] = None,
    ):
        """
        Initialize the Redis session store.

        Args:
            client: An existing async Redis client. When omitted, one is
                built from ``connection`` or ``url``.
            prefix: Prefix for every key the store writes (default "sess:").
            ttl: Explicit TTL applied to every session, overriding maxAge.
            default_ttl: Fallback TTL, one day unless configured otherwise.
            connection: Explicit connection options.
            url: ``redis://`` URL parsed into connection options when
                ``connection`` is not given.
        """
        self.keys = KeyCodec(prefix)
        self.ttl = ttl
        self.default_ttl = default_ttl
        self._listeners: dict[str, list[Listener]] = {
            CONNECT_EVENT: [],
            DISCONNECT_EVENT: [],
        }
        self._background_tasks: set[asyncio.Task] = set()

        if client is not None:
            self.connection_options = None
            self.client = client
            self._owns_client = False
        else:
            if connection is None:
                connection = parse_redis_url(url) if url else RedisConnectionOptions()
            self.connection_options = connection
            self.client = build_client(connection, redis_connect_func=self._on_backend_connect)
            self._owns_client = True

    @property
    def prefix(self) -> str:
        return self.keys.prefix

    # Lifecycle

    async def connect(self) -> None:
        """
        Open the backend connection and verify it answers.

        Raises:
            BackendError: If Redis cannot be reached.
        """
        await self._execute("ping", None, self.client.ping)
        if not self._owns_client:
            # Clients we did not build carry no reconnect hook of ours
            self._emit(CONNECT_EVENT)

    async def disconnect(self) -> None:
        """
        Wait for pending index maintenance, then close the client.

        A client passed in by the caller is left open.
        """
        await self.wait_for_background_tasks()
        if self._owns_client and self.client is not None:
            await self.client.aclose()

    async def _on_backend_connect(self, connection: Any) -> None:
        """
        Connect callback registered with the Redis client.

        Runs for every connection the client opens, including reconnects
        after a reset, and reissues the handshake so AUTH and the SELECT
        of the configured logical db are reasserted each time.
        """
        await connection.on_connect()
        db = self.connection_options.db if self.connection_options else None
        logger.info(
            "Connected to Redis",
            extra={"extra_data": {"db": db or 0, "prefix": self.prefix}},
        )
        self._emit(CONNECT_EVENT)

    # Events

    def on(self, event: str, listener: Listener) -> None:
        """
        Register a listener for ``"connect"`` or ``"disconnect"``.

        Listeners may be plain callables or coroutine functions. They are
        notified for observability only; a failing listener is logged.

        For a client the store built, ``"connect"`` fires once for every
        connection its pool opens: the first one, each additional pooled
        connection under concurrent load, and every reconnect. It is not
        a reconnect-only signal. For a caller-supplied client it fires
        once, after ``connect()`` succeeds.
        """
        if event not in self._listeners:
            raise ValueError(f"Unknown store event: {event!r}")
        self._listeners[event].append(listener)

    def remove_listener(self, event: str, listener: Listener) -> None:
        """Unregister a listener previously passed to ``on``."""
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def _emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners[event]):
            try:
                result = listener(*args)
            except Exception:
                logger.exception(f"Session store {event} listener failed")
                continue
            if inspect.isawaitable(result):
                self._spawn(self._best_effort(result, f"{event} listener"))

    # Backend access

    async def _execute(
        self,
        operation: str,
        key: Optional[str],
        command: Callable[..., Awaitable[Any]],
        *args: Any,
    ) -> Any:
        """
        Issue one Redis command, translating failures into BackendError.

        Connection-level failures also emit ``"disconnect"``.
        """
        attributes = {"db.redis.key": key} if key is not None else None
        with external_service_span("redis", operation, attributes):
            try:
                return await command(*args)
            except (RedisConnectionError, RedisTimeoutError) as e:
                self._emit(DISCONNECT_EVENT, e)
                raise BackendError(
                    f"Redis {operation.upper()} failed: {e}",
                    details={"operation": operation, "key": key},
                ) from e
            except RedisError as e:
                raise BackendError(
                    f"Redis {operation.upper()} failed: {e}",
                    details={"operation": operation, "key": key},
                ) from e
            except UnicodeDecodeError as e:
                # Clients built with decode_responses=True decode in the parser
                raise DecodeError(
                    f"Redis {operation.upper()} returned a value that is not valid UTF-8: {e}",
                    details={"key": key},
                ) from e

    def _spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def _best_effort(self, awaitable: Awaitable[Any], description: str) -> None:
        """Await a secondary operation; failures are logged, never raised."""
        try:
            await awaitable
        except Exception as e:
            logger.warning(
                f"Best-effort {description} failed",
                extra={"extra_data": {"error": str(e), "error_type": type(e).__name__}},
            )

    async def wait_for_background_tasks(self) -> None:
        """Wait until every pending index add/remove has finished."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    # Session API

    async def get(self, sid: str) -> Optional[dict[str, Any]]:
        """
        Retrieve a session record by session id.

        Returns:
            The decoded record, or None if the key does not exist.

        Raises:
            BackendError: If the Redis GET fails.
            DecodeError: If the stored value is not a JSON object. The key
                is left in place.
        """
        key = self.keys.session_key(sid)
        logger.debug('GET "%s"', key)
        data = await self._execute("get", key, self.client.get, key)
        if not data:
            return None
        return decode_record(data, key)

    async def set(self, sid: str, record: dict[str, Any]) -> None:
        """
        Store a session record and index it under its user.

        The index add is dispatched first and runs in the background; its
        failure is only logged, and it is not undone if the write below
        fails. A TTL that works out to zero or less means the cookie has
        already expired, so the key is deleted instead of written.

        Raises:
            EncodeError: If the record is not JSON serializable. Nothing
                is written.
            BackendError: If the Redis write fails.
        """
        key = self.keys.session_key(sid)

        uid = extract_user_id(record)
        if uid is not None:
            index_key = self.keys.user_index_key(uid)
            self._spawn(self._best_effort(
                self._execute("sadd", index_key, self.client.sadd, index_key, key),
                f"index add of {key} to {index_key}",
            ))

        ttl = derive_ttl(record, self.ttl, self.default_ttl)
        payload = encode_record(record)

        if ttl <= 0:
            logger.debug('DEL "%s" (expired, ttl:%s)', key, ttl)
            await self._execute("delete", key, self.client.delete, key)
            return

        logger.debug('SETEX "%s" ttl:%s', key, ttl)
        await self._execute("setex", key, self.client.setex, key, ttl, payload)

    async def destroy(self, sid: str) -> None:
        """
        Delete a session record.

        Idempotent. The sid stays in its user's index until the next
        ``list_user_sessions`` prunes it.

        Raises:
            BackendError: If the Redis DEL fails.
        """
        key = self.keys.session_key(sid)
        logger.debug('DEL "%s"', key)
        await self._execute("delete", key, self.client.delete, key)

    async def list_user_sessions(self, uid: Any) -> list[dict[str, Any]]:
        """
        Return the live sessions indexed under a user.

        All indexed keys are fetched with a single MGET. A member is stale
        when its key no longer exists or its record carries no user
        identity (the user logged out); stale members are removed from the
        index in the background. A member whose payload cannot be decoded
        is skipped and kept in the index.

        Note that a session indexed without a user field is treated as
        logged out and pruned, the same as an explicit logout.

        Args:
            uid: The user id the sessions were indexed under.

        Returns:
            Decoded records, each with its bare session id under ``"sid"``.
            Order follows the index set's iteration order.

        Raises:
            BackendError: If reading the index or the records fails.
        """
        index_key = self.keys.user_index_key(uid)
        members = await self._execute("smembers", index_key, self.client.smembers, index_key)
        keys = [_as_text(member) for member in members]
        if not keys:
            return []

        payloads = await self._execute("mget", index_key, self.client.mget, keys)

        sessions: list[dict[str, Any]] = []
        stale: list[str] = []
        for key, raw in zip(keys, payloads):
            if raw is None:
                stale.append(key)
                continue
            try:
                record = decode_record(raw, key)
            except DecodeError as e:
                logger.warning(
                    "Skipping undecodable indexed session",
                    extra={"extra_data": {"key": key, "index_key": index_key, "error": e.message}},
                )
                continue
            if extract_user_id(record) is None:
                stale.append(key)
                continue
            record["sid"] = self.keys.strip_prefix(key)
            sessions.append(record)

        if stale:
            logger.debug("Pruning %d stale sessions from %s", len(stale), index_key)
            self._spawn(self._best_effort(
                self._execute("srem", index_key, self.client.srem, index_key, *stale),
                f"index prune of {index_key}",
            ))
            record_metric("session_store.index_pruned", len(stale))

        return sessions

    async def health_check(self) -> bool:
        """
        Check connectivity of Redis with a PING.

        Returns:
            True if Redis answered, False otherwise. Never raises.
        """
        if self.client is None:
            return False
        try:
            result = await self.client.ping()
            return result is True or result == "PONG"
        except Exception:
            return False

    def __repr__(self) -> str:
        return f"RedisSessionStore(prefix={self.prefix!r}, ttl={self.ttl!r})"
