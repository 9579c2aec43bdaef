from __future__ import annotations

import asyncio

from redis.asyncio import Redis

from authsession.domain.ports.refresh_store import RefreshStorePort
from authsession.infrastructure.redis_cache.scripts import LUA_GET_AND_DELETE

SECONDS_PER_DAY = 24 * 60 * 60


class RedisRefreshStore(RefreshStorePort):
    """
    refresh token -> user id. Errors (including timeouts) propagate; the
    application layer decides whether to fail closed or carry on.
    """

    def __init__(
        self,
        redis: Redis,
        *,
        key_prefix: str = "auth:refresh:",
        timeout_seconds: float = 0.25,
    ) -> None:
        self._redis = redis
        self._prefix = key_prefix
        self._timeout = timeout_seconds

    def _key(self, token: str) -> str:
        return f"{self._prefix}{token}"

    async def save(self, token: str, user_id: str, ttl_days: int) -> None:
        await asyncio.wait_for(
            self._redis.set(self._key(token), user_id, ex=ttl_days * SECONDS_PER_DAY),
            self._timeout,
        )

    async def get(self, token: str) -> str | None:
        return await asyncio.wait_for(self._redis.get(self._key(token)), self._timeout)

    async def consume(self, token: str) -> str | None:
        res = await asyncio.wait_for(
            self._redis.eval(LUA_GET_AND_DELETE, 1, self._key(token)), self._timeout
        )
        return res or None

    async def revoke(self, token: str) -> None:
        await asyncio.wait_for(self._redis.delete(self._key(token)), self._timeout)
