"""Unit tests for the Redis refresh-token registry (mocked Redis)."""

from unittest.mock import AsyncMock

import pytest

from src.rb_common import redis_client
from src.rb_common.redis_client import RedisConnection
from src.rb_gateway.auth.token_store import RefreshTokenStore


@pytest.fixture
def redis() -> AsyncMock:
    return AsyncMock()


async def test_register_stores_hash_with_ttl(redis: AsyncMock) -> None:
    store = RefreshTokenStore(ttl_seconds=60)
    await store.register(redis, "raw-token", "user-1")
    key, value = redis.set.call_args.args
    assert key.startswith("auth:refresh:")
    assert "raw-token" not in key
    assert value == "user-1"
    assert redis.set.call_args.kwargs == {"ex": 60}


async def test_owner_missing_returns_none(redis: AsyncMock) -> None:
    redis.get.return_value = None
    assert await RefreshTokenStore().owner(redis, "raw-token") is None


async def test_owner_found(redis: AsyncMock) -> None:
    redis.get.return_value = "user-1"
    assert await RefreshTokenStore().owner(redis, "raw-token") == "user-1"


async def test_revoke_deletes_same_key(redis: AsyncMock) -> None:
    store = RefreshTokenStore()
    await store.register(redis, "raw-token", "user-1")
    await store.revoke(redis, "raw-token")
    assert redis.delete.call_args.args[0] == redis.set.call_args.args[0]


class TestRedisConnection:
    async def test_client_is_created_once(self, monkeypatch: pytest.MonkeyPatch) -> None:
        created: list[str] = []

        def fake_from_url(url: str, **kwargs: object) -> AsyncMock:
            created.append(url)
            return AsyncMock()

        monkeypatch.setattr(redis_client.aioredis, "from_url", fake_from_url)
        conn = RedisConnection("redis://cache:6379/0")
        assert conn.client() is conn.client()
        assert created == ["redis://cache:6379/0"]

    async def test_connect_pings_and_close_resets(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = AsyncMock()
        monkeypatch.setattr(redis_client.aioredis, "from_url", lambda url, **kw: fake)
        conn = RedisConnection("redis://cache:6379/0")
        assert await conn.connect() is fake
        fake.ping.assert_awaited_once()
        await conn.close()
        fake.aclose.assert_awaited_once()
        await conn.close()
        fake.aclose.assert_awaited_once()

    async def test_unreachable_redis_fails_startup(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = AsyncMock()
        fake.ping.side_effect = ConnectionError("refused")
        monkeypatch.setattr(redis_client.aioredis, "from_url", lambda url, **kw: fake)
        with pytest.raises(ConnectionError):
            await RedisConnection("redis://cache:6379/0").connect()
