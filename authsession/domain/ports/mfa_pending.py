from __future__ import annotations

from typing import Protocol

from authsession.domain.mfa import MfaPending


class MfaPendingStorePort(Protocol):
    async def put(self, pending: MfaPending, ttl_seconds: int) -> None:
        """Mark pending.access_token as waiting for a second factor."""

    async def get(self, access_token: str) -> MfaPending | None:
        """The pending login, or None if expired / consumed."""

    async def consume(self, access_token: str) -> MfaPending | None:
        """Atomically read and delete. None if already gone."""
