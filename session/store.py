"""
Session store abstraction.

This module defines the interface a host session middleware relies on
(get, set, destroy) together with the per-user session lookup and a
health probe.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class SessionStore(ABC):
    """
    Abstract base class for session storage implementations.

    All methods are async: callers suspend only while a backend round
    trip is in flight and are never blocked on backend I/O.
    """

    @abstractmethod
    async def get(self, sid: str) -> Optional[dict[str, Any]]:
        """
        Retrieve a session record by session id.

        Args:
            sid: Unique identifier for the session.

        Returns:
            The decoded session record, or None if no record exists
            (never stored, destroyed or expired).

        Raises:
            BackendError: If the backend read fails.
            DecodeError: If the stored payload is not a JSON object.
        """
        pass

    @abstractmethod
    async def set(self, sid: str, record: dict[str, Any]) -> None:
        """
        Create or replace a session record, resetting its expiry.

        Args:
            sid: Unique identifier for the session.
            record: Session record to store.

        Raises:
            EncodeError: If the record cannot be serialized.
            BackendError: If the backend write fails.
        """
        pass

    @abstractmethod
    async def destroy(self, sid: str) -> None:
        """
        Delete a session record.

        Destroying a session that does not exist is not an error.

        Raises:
            BackendError: If the backend delete fails.
        """
        pass

    @abstractmethod
    async def list_user_sessions(self, uid: Any) -> list[dict[str, Any]]:
        """
        Return the live session records of a user.

        Each returned record carries its bare session id under ``"sid"``.

        Raises:
            BackendError: If the index or the records cannot be read.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check connectivity of the backend.

        Returns:
            True if the backend answers, False otherwise. Never raises.
        """
        pass
