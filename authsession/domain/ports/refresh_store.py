from __future__ import annotations

from typing import Protocol


class RefreshStorePort(Protocol):
    async def save(self, token: str, user_id: str, ttl_days: int) -> None:
        """Remember a valid refresh token for user_id, for ttl_days days."""

    async def get(self, token: str) -> str | None:
        """The owning user id if the token is still valid, else None."""

    async def consume(self, token: str) -> str | None:
        """
        Atomically read and delete the record.
        Returns the user id, or None if it was already gone (so two
        concurrent rotations of the same token cannot both succeed).
        """

    async def revoke(self, token: str) -> None:
        """Delete the record. Not an error if it does not exist."""
