"""
Shared pytest fixtures and configuration for all tests.
"""
import os
from typing import Any, Iterable, Optional, Union
from unittest.mock import MagicMock, AsyncMock

import pytest
from redis.exceptions import ResponseError

# Hypothesis configuration for property-based testing
from hypothesis import settings, Verbosity, Phase

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,  # Disable deadline for async tests
    print_blob=True,  # Print failing examples for debugging
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,  # Reproducible results in CI
)

# Debug profile: minimal examples for quick debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],  # Skip shrinking for speed
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


class FakeRedis:
    """
    In-memory stand-in for the subset of ``redis.asyncio.Redis`` the
    session store uses. Values written by the store are kept as ``str``;
    tests may plant raw ``bytes`` to mimic what a real client returns.
    """

    def __init__(self) -> None:
        self.values: dict[str, Union[str, bytes]] = {}
        self.ttls: dict[str, int] = {}
        self.sets: dict[str, set[str]] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        if ttl <= 0:
            raise ResponseError("invalid expire time in 'setex' command")
        self.values[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.values.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
            if self.sets.pop(key, None) is not None:
                removed += 1
        return removed

    async def sadd(self, key: str, *members: str) -> int:
        members_set = self.sets.setdefault(key, set())
        added = len(set(members) - members_set)
        members_set.update(members)
        return added

    async def srem(self, key: str, *members: str) -> int:
        members_set = self.sets.get(key, set())
        removed = len(members_set & set(members))
        members_set.difference_update(members)
        if not members_set:
            self.sets.pop(key, None)
        return removed

    async def smembers(self, key: str) -> set[str]:
        return set(self.sets.get(key, set()))

    async def mget(self, keys: Union[str, Iterable[str]], *args: str) -> list[Optional[str]]:
        if isinstance(keys, str):
            keys = [keys]
        return [self.values.get(key) for key in [*keys, *args]]

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        pass

    def expire_now(self, key: str) -> None:
        """Simulate Redis expiring a key on its own."""
        self.values.pop(key, None)
        self.ttls.pop(key, None)


@pytest.fixture
def fake_redis() -> FakeRedis:
    """In-memory async Redis double."""
    return FakeRedis()


@pytest.fixture
def store(fake_redis: FakeRedis) -> Any:
    """Session store backed by the in-memory Redis double."""
    from session.redis_store import RedisSessionStore
    return RedisSessionStore(fake_redis)


@pytest.fixture
def mock_redis() -> MagicMock:
    """Create a mock Redis client for unit tests."""
    mock = MagicMock()
    mock.get = AsyncMock(return_value=None)
    mock.setex = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.sadd = AsyncMock(return_value=1)
    mock.srem = AsyncMock(return_value=1)
    mock.smembers = AsyncMock(return_value=set())
    mock.mget = AsyncMock(return_value=[])
    mock.ping = AsyncMock(return_value=True)
    mock.aclose = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def sample_session() -> dict:
    """Session record produced by an authenticated login."""
    return {
        "cookie": {
            "originalMaxAge": 3600000,
            "maxAge": 3600000,
            "httpOnly": True,
            "path": "/",
        },
        "passport": {"user": "u42"},
        "csrfSecret": "k3Yq-xT9",
    }


@pytest.fixture
def anonymous_session() -> dict:
    """Session record with no authenticated user."""
    return {
        "cookie": {"originalMaxAge": None, "maxAge": None, "httpOnly": True, "path": "/"},
        "views": 3,
    }
