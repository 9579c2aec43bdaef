from __future__ import annotations

from typing import Protocol

from authsession.domain.entities import CachedIdentity


class SessionCachePort(Protocol):
    """
    Best-effort cache of verified identities keyed by the raw bearer token.
    Implementations never raise: a backend failure is a miss / no-op.
    """

    async def lookup(self, token: str) -> CachedIdentity | None:
        """Cached identity, or None on miss or when the backend is unreachable."""

    async def store(
        self, token: str, identity: CachedIdentity, ttl_seconds: int
    ) -> None:
        """Store/replace the identity with TTL=ttl_seconds."""

    async def delete(self, token: str) -> None:
        """Drop the entry (logout)."""
