from __future__ import annotations

import asyncio
import logging

from redis.asyncio import Redis

from authsession.domain.entities import CachedIdentity
from authsession.domain.ports.session_cache import SessionCachePort

logger = logging.getLogger(__name__)


class RedisSessionCache(SessionCachePort):
    """
    Fail-open cache: a slow or unreachable Redis turns every lookup into a
    miss and every write into a no-op, so requests fall through to real
    verification instead of blocking.
    """

    def __init__(
        self,
        redis: Redis,
        *,
        key_prefix: str = "auth:token:",
        timeout_seconds: float = 0.25,
    ) -> None:
        self._redis = redis
        self._prefix = key_prefix
        self._timeout = timeout_seconds

    def _key(self, token: str) -> str:
        return f"{self._prefix}{token}"

    async def lookup(self, token: str) -> CachedIdentity | None:
        try:
            raw = await asyncio.wait_for(
                self._redis.get(self._key(token)), self._timeout
            )
        except Exception as exc:
            logger.debug("session cache lookup failed", extra={"error": repr(exc)})
            return None
        if not raw:
            return None
        try:
            return CachedIdentity.from_json(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning("session cache entry undecodable, ignoring")
            return None

    async def store(
        self, token: str, identity: CachedIdentity, ttl_seconds: int
    ) -> None:
        try:
            await asyncio.wait_for(
                self._redis.set(self._key(token), identity.to_json(), ex=ttl_seconds),
                self._timeout,
            )
        except Exception as exc:
            logger.debug("session cache store failed", extra={"error": repr(exc)})

    async def delete(self, token: str) -> None:
        try:
            await asyncio.wait_for(self._redis.delete(self._key(token)), self._timeout)
        except Exception as exc:
            logger.debug("session cache delete failed", extra={"error": repr(exc)})
