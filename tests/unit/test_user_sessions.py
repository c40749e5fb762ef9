"""
Unit tests for the per-user session index.

These tests verify:
- Authenticated writes add the session key to the user's index set
- list_user_sessions returns only live, logged-in sessions tagged with sid
- Expired/destroyed and logged-out sessions are pruned from the index
- Index failures stay out of the caller's result
"""

import json
from unittest.mock import patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from errors.exceptions import BackendError
from session.redis_store import RedisSessionStore


def _logged_in(uid, **extra):
    return {"cookie": {"maxAge": 3600000}, "passport": {"user": uid}, **extra}


class TestIndexOnWrite:
    """Tests for populating the index set on set()."""

    @pytest.mark.asyncio
    async def test_authenticated_set_indexes_full_key(self, store, fake_redis, sample_session):
        await store.set("abc", sample_session)
        await store.wait_for_background_tasks()

        assert fake_redis.sets["sess:user_sessions:u42"] == {"sess:abc"}

    @pytest.mark.asyncio
    async def test_anonymous_set_does_not_index(self, store, fake_redis, anonymous_session):
        await store.set("abc", anonymous_session)
        await store.wait_for_background_tasks()

        assert fake_redis.sets == {}

    @pytest.mark.asyncio
    async def test_repeated_sets_index_once(self, store, fake_redis):
        for _ in range(3):
            await store.set("abc", _logged_in("u42"))
        await store.wait_for_background_tasks()

        assert fake_redis.sets["sess:user_sessions:u42"] == {"sess:abc"}

    @pytest.mark.asyncio
    async def test_index_uses_store_prefix(self, fake_redis):
        store = RedisSessionStore(fake_redis, prefix="app:")

        await store.set("abc", _logged_in(7))
        await store.wait_for_background_tasks()

        assert fake_redis.sets["app:user_sessions:7"] == {"app:abc"}

    @pytest.mark.asyncio
    async def test_non_scalar_user_id_is_not_indexed(self, store, fake_redis):
        await store.set("abc", _logged_in({"id": 1}))
        await store.wait_for_background_tasks()

        assert fake_redis.sets == {}
        assert "sess:abc" in fake_redis.values


class TestListUserSessions:
    """Tests for resolving and pruning a user's sessions."""

    @pytest.mark.asyncio
    async def test_unknown_user_has_no_sessions(self, store):
        assert await store.list_user_sessions("nobody") == []

    @pytest.mark.asyncio
    async def test_prunes_expired_and_logged_out_sessions(self, store, fake_redis):
        await store.set("A", _logged_in("u42", theme="dark"))
        await store.set("B", _logged_in("u42"))
        await store.set("C", _logged_in("u42"))
        await store.wait_for_background_tasks()

        # B expires inside Redis; C logs out, which drops passport.user
        fake_redis.expire_now("sess:B")
        await store.set("C", {"cookie": {"maxAge": 3600000}, "passport": {}})

        sessions = await store.list_user_sessions("u42")
        await store.wait_for_background_tasks()

        assert sessions == [_logged_in("u42", theme="dark", sid="A")]
        assert fake_redis.sets["sess:user_sessions:u42"] == {"sess:A"}

    @pytest.mark.asyncio
    async def test_destroyed_session_is_pruned(self, store, fake_redis):
        await store.set("A", _logged_in("u42"))
        await store.set("B", _logged_in("u42"))
        await store.wait_for_background_tasks()
        await store.destroy("B")

        sessions = await store.list_user_sessions("u42")
        await store.wait_for_background_tasks()

        assert [s["sid"] for s in sessions] == ["A"]
        assert fake_redis.sets["sess:user_sessions:u42"] == {"sess:A"}

    @pytest.mark.asyncio
    async def test_session_without_passport_is_pruned(self, store, fake_redis):
        fake_redis.sets["sess:user_sessions:u42"] = {"sess:X"}
        fake_redis.values["sess:X"] = json.dumps({"cookie": {}})

        assert await store.list_user_sessions("u42") == []
        await store.wait_for_background_tasks()

        assert "sess:user_sessions:u42" not in fake_redis.sets

    @pytest.mark.asyncio
    async def test_sid_has_prefix_stripped(self, fake_redis):
        store = RedisSessionStore(fake_redis, prefix="app:")
        await store.set("s-1", _logged_in("u1"))
        await store.set("s-2", _logged_in("u1"))
        await store.wait_for_background_tasks()

        sessions = await store.list_user_sessions("u1")

        assert sorted(s["sid"] for s in sessions) == ["s-1", "s-2"]

    @pytest.mark.asyncio
    async def test_undecodable_entry_is_skipped_but_kept(self, store, fake_redis):
        await store.set("A", _logged_in("u42"))
        await store.wait_for_background_tasks()
        fake_redis.sets["sess:user_sessions:u42"].add("sess:broken")
        fake_redis.values["sess:broken"] = "not json"

        sessions = await store.list_user_sessions("u42")
        await store.wait_for_background_tasks()

        assert [s["sid"] for s in sessions] == ["A"]
        assert fake_redis.sets["sess:user_sessions:u42"] == {"sess:A", "sess:broken"}

    @pytest.mark.asyncio
    async def test_invalid_utf8_entry_is_skipped_but_kept(self, store, fake_redis):
        await store.set("A", _logged_in("u42"))
        await store.wait_for_background_tasks()
        fake_redis.sets["sess:user_sessions:u42"].add("sess:bad")
        fake_redis.values["sess:bad"] = b"\xff\xfe{"

        sessions = await store.list_user_sessions("u42")
        await store.wait_for_background_tasks()

        assert [s["sid"] for s in sessions] == ["A"]
        assert fake_redis.sets["sess:user_sessions:u42"] == {"sess:A", "sess:bad"}

    @pytest.mark.asyncio
    async def test_single_batched_read(self, mock_redis):
        mock_redis.smembers.return_value = {"sess:a", "sess:b", "sess:c"}
        mock_redis.mget.return_value = [json.dumps(_logged_in("u42"))] * 3
        store = RedisSessionStore(mock_redis)

        sessions = await store.list_user_sessions("u42")

        mock_redis.mget.assert_awaited_once()
        requested = mock_redis.mget.await_args.args[0]
        assert sorted(requested) == ["sess:a", "sess:b", "sess:c"]
        # Positional correspondence: each record is tagged with its own key
        assert [s["sid"] for s in sessions] == [key[len("sess:"):] for key in requested]
        mock_redis.get.assert_not_awaited()
        mock_redis.srem.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bytes_members_are_decoded(self, mock_redis):
        mock_redis.smembers.return_value = {b"sess:a"}
        mock_redis.mget.return_value = [json.dumps(_logged_in("u42")).encode()]
        store = RedisSessionStore(mock_redis)

        sessions = await store.list_user_sessions("u42")

        assert sessions[0]["sid"] == "a"

    @pytest.mark.asyncio
    async def test_index_read_failure_raises_backend_error(self, mock_redis):
        mock_redis.smembers.side_effect = RedisConnectionError("Connection refused")
        store = RedisSessionStore(mock_redis)

        with pytest.raises(BackendError):
            await store.list_user_sessions("u42")

    @pytest.mark.asyncio
    async def test_batch_read_failure_raises_backend_error(self, mock_redis):
        mock_redis.smembers.return_value = {"sess:a"}
        mock_redis.mget.side_effect = RedisConnectionError("Connection reset")
        store = RedisSessionStore(mock_redis)

        with pytest.raises(BackendError):
            await store.list_user_sessions("u42")

    @pytest.mark.asyncio
    async def test_prune_failure_is_not_propagated(self, mock_redis):
        mock_redis.smembers.return_value = {"sess:a", "sess:gone"}
        mock_redis.mget.side_effect = lambda keys: [
            json.dumps(_logged_in("u42")) if key == "sess:a" else None for key in keys
        ]
        mock_redis.srem.side_effect = RedisConnectionError("Connection refused")
        store = RedisSessionStore(mock_redis)

        with patch("session.redis_store.logger") as logger:
            sessions = await store.list_user_sessions("u42")
            await store.wait_for_background_tasks()

        assert [s["sid"] for s in sessions] == ["a"]
        mock_redis.srem.assert_awaited_once_with("sess:user_sessions:u42", "sess:gone")
        logger.warning.assert_called_once()
