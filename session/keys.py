"""
Redis key construction for session records and per-user index sets.

Session records live under ``<prefix><sid>``; the set of session keys
belonging to a user lives under ``<prefix>user_sessions:<uid>``.
"""

from typing import Any, Union

DEFAULT_KEY_PREFIX = "sess:"

USER_INDEX_NAMESPACE = "user_sessions:"


class KeyCodec:
    """
    Derives Redis keys from session ids and user ids.

    The prefix is fixed for the lifetime of a store instance, so two
    stores configured with different prefixes never share session keys.

    Attributes:
        prefix: String prepended to every key this codec produces.
    """

    def __init__(self, prefix: str = DEFAULT_KEY_PREFIX):
        self.prefix = prefix

    def session_key(self, sid: str) -> str:
        """Return the Redis key holding the payload for ``sid``."""
        return f"{self.prefix}{sid}"

    def user_index_key(self, uid: Any) -> str:
        """Return the Redis key of the index set for user ``uid``."""
        return f"{self.prefix}{USER_INDEX_NAMESPACE}{uid}"

    def strip_prefix(self, key: Union[str, bytes]) -> str:
        """
        Recover the bare session id from a full session key.

        Keys that do not start with the prefix are returned unchanged.

        Args:
            key: A session key, as read back from an index set.

        Returns:
            The session id without the store prefix.
        """
        if isinstance(key, bytes):
            key = key.decode("utf-8")
        if self.prefix and key.startswith(self.prefix):
            return key[len(self.prefix):]
        return key

    def __repr__(self) -> str:
        return f"KeyCodec(prefix={self.prefix!r})"
