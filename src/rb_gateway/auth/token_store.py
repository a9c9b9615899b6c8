"""Refresh-token registry backed by Redis.

Key:   auth:refresh:<sha256(token)>
Value: subject (user id)
TTL:   refresh-token lifetime; Redis evicts expired entries on its own.

Only the token hash is stored, so a dump of Redis does not leak usable
tokens. Rotation = revoke old key + register new key.
"""

import hashlib

import redis.asyncio as aioredis

from src.rb_gateway.auth.jwt_handler import REFRESH_EXPIRE

_KEY_PREFIX = "auth:refresh:"


def _key(token: str) -> str:
    return _KEY_PREFIX + hashlib.sha256(token.encode("utf-8")).hexdigest()


class RefreshTokenStore:
    def __init__(self, ttl_seconds: int | None = None) -> None:
        self._ttl = ttl_seconds or int(REFRESH_EXPIRE.total_seconds())

    async def register(self, redis: aioredis.Redis, token: str, user_id: str) -> None:
        await redis.set(_key(token), user_id, ex=self._ttl)

    async def owner(self, redis: aioredis.Redis, token: str) -> str | None:
        value = await redis.get(_key(token))
        return str(value) if value is not None else None

    async def revoke(self, redis: aioredis.Redis, token: str) -> None:
        await redis.delete(_key(token))
