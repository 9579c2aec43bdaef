import asyncio

import pytest

from authsession.domain.entities import CachedIdentity
from authsession.domain.mfa import MfaPending
from authsession.infrastructure.redis_cache.mfa_pending import RedisMfaPendingStore
from authsession.infrastructure.redis_cache.refresh_store import RedisRefreshStore
from authsession.infrastructure.redis_cache.session_cache import RedisSessionCache


async def _flush_prefix(redis, prefix: str) -> None:
    keys = await redis.keys(f"{prefix}*")
    if keys:
        await redis.delete(*keys)


@pytest.mark.asyncio
async def test_session_cache_entry_expires(redis_client):
    r = redis_client
    prefix = "auth:test:token:"
    await _flush_prefix(r, prefix)

    cache = RedisSessionCache(r, key_prefix=prefix, timeout_seconds=1.0)
    identity = CachedIdentity(id="u1", email="a@x.com", role="cliente")

    await cache.store("tok", identity, 1)
    assert await cache.lookup("tok") == identity
    assert await r.ttl(f"{prefix}tok") in (0, 1)

    await asyncio.sleep(1.5)
    assert await cache.lookup("tok") is None


@pytest.mark.asyncio
async def test_refresh_record_ttl_and_single_consume(redis_client):
    r = redis_client
    prefix = "auth:test:refresh:"
    await _flush_prefix(r, prefix)

    store = RedisRefreshStore(r, key_prefix=prefix, timeout_seconds=1.0)
    await store.save("rt", "u1", 7)

    ttl = await r.ttl(f"{prefix}rt")
    assert 7 * 86400 - 2 <= ttl <= 7 * 86400

    results = await asyncio.gather(*(store.consume("rt") for _ in range(5)))
    assert results.count("u1") == 1
    assert results.count(None) == 4
    assert await store.get("rt") is None


@pytest.mark.asyncio
async def test_refresh_revoke(redis_client):
    r = redis_client
    prefix = "auth:test:revoke:"
    await _flush_prefix(r, prefix)

    store = RedisRefreshStore(r, key_prefix=prefix, timeout_seconds=1.0)
    await store.save("rt", "u1", 1)
    await store.revoke("rt")
    await store.revoke("rt")

    assert await store.get("rt") is None


@pytest.mark.asyncio
async def test_mfa_pending_record_consumed_once(redis_client):
    r = redis_client
    prefix = "auth:test:mfa:"
    await _flush_prefix(r, prefix)

    store = RedisMfaPendingStore(r, key_prefix=prefix, timeout_seconds=1.0)
    pending = MfaPending("at", "u1", "f1", expires_at=1_700_000_300.0)
    await store.put(pending, 300)

    assert await store.get("at") == pending
    assert await r.ttl(f"{prefix}at") in (299, 300)
    assert (await store.consume("at")).user_id == "u1"
    assert await store.consume("at") is None
