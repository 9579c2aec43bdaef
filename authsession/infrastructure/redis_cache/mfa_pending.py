from __future__ import annotations

import asyncio
import logging

from redis.asyncio import Redis

from authsession.domain.mfa import MfaPending
from authsession.domain.ports.mfa_pending import MfaPendingStorePort
from authsession.infrastructure.redis_cache.scripts import LUA_GET_AND_DELETE

logger = logging.getLogger(__name__)


def _decode(raw: str | None) -> MfaPending | None:
    if not raw:
        return None
    try:
        return MfaPending.from_json(raw)
    except (ValueError, KeyError, TypeError):
        logger.warning("mfa pending record undecodable, ignoring")
        return None


class RedisMfaPendingStore(MfaPendingStorePort):
    def __init__(
        self,
        redis: Redis,
        *,
        key_prefix: str = "auth:mfa_pending:",
        timeout_seconds: float = 0.25,
    ) -> None:
        self._redis = redis
        self._prefix = key_prefix
        self._timeout = timeout_seconds

    def _key(self, access_token: str) -> str:
        return f"{self._prefix}{access_token}"

    async def put(self, pending: MfaPending, ttl_seconds: int) -> None:
        await asyncio.wait_for(
            self._redis.set(
                self._key(pending.access_token), pending.to_json(), ex=ttl_seconds
            ),
            self._timeout,
        )

    async def get(self, access_token: str) -> MfaPending | None:
        raw = await asyncio.wait_for(
            self._redis.get(self._key(access_token)), self._timeout
        )
        return _decode(raw)

    async def consume(self, access_token: str) -> MfaPending | None:
        raw = await asyncio.wait_for(
            self._redis.eval(LUA_GET_AND_DELETE, 1, self._key(access_token)),
            self._timeout,
        )
        return _decode(raw)
