"""Shared Redis connection for the refresh-token registry.

Debts, stock and session totals never touch Redis; PostgreSQL owns them.
The connection is opened by the app lifespan and handed to routes through
the ``get_redis`` dependency.
"""

import logging

import redis.asyncio as aioredis

from config.settings import settings

logger = logging.getLogger(__name__)


class RedisConnection:
    def __init__(self, url: str, timeout_seconds: float = 5.0) -> None:
        self._url = url
        self._timeout = timeout_seconds
        self._client: aioredis.Redis | None = None

    def client(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.from_url(
                self._url,
                decode_responses=True,
                socket_timeout=self._timeout,
                socket_connect_timeout=self._timeout,
                health_check_interval=30,
            )
        return self._client

    async def connect(self) -> aioredis.Redis:
        """Open the pool and fail fast when Redis is unreachable."""
        client = self.client()
        await client.ping()
        logger.info("Redis reachable at %s", self._url.rsplit("@", 1)[-1])
        return client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


redis_connection = RedisConnection(settings.REDIS_URL, settings.REDIS_TIMEOUT_SECONDS)


async def get_redis() -> aioredis.Redis:
    """FastAPI dependency."""
    return redis_connection.client()
