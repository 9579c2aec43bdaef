from __future__ import annotations

import logging

from authsession.application.issue_session import SessionIssuer
from authsession.domain.entities import SessionArtifacts
from authsession.domain.errors import ExpiredRotation, ProviderUnavailable
from authsession.domain.ports.identity_provider import IdentityProviderPort
from authsession.domain.ports.refresh_store import RefreshStorePort
from authsession.domain.ports.session_cache import SessionCachePort
from authsession.domain.result import Err

logger = logging.getLogger(__name__)


async def rotate_refresh_token(
    old_refresh_token: str,
    provider: IdentityProviderPort,
    refresh_store: RefreshStorePort,
    issuer: SessionIssuer,
) -> SessionArtifacts:
    """
    Exchange a refresh token for a new pair. The old token is consumed with
    an atomic get-and-delete after the provider answers, so a replayed or
    concurrently rotated token fails with ExpiredRotation.
    """
    if not old_refresh_token:
        raise ExpiredRotation("no refresh token")

    try:
        user_id = await refresh_store.get(old_refresh_token)
    except Exception as exc:
        logger.warning("refresh store unavailable", extra={"error": repr(exc)})
        raise ExpiredRotation("refresh token could not be validated") from exc
    if not user_id:
        raise ExpiredRotation("refresh token expired or already used")

    res = await provider.refresh_session(old_refresh_token)
    if isinstance(res, Err):
        if res.error.unavailable:
            raise ProviderUnavailable(res.error.message)
        await _revoke_quietly(refresh_store, old_refresh_token)
        raise ExpiredRotation(res.error.message)

    try:
        consumed = await refresh_store.consume(old_refresh_token)
    except Exception as exc:
        logger.warning("refresh store unavailable", extra={"error": repr(exc)})
        raise ExpiredRotation("refresh token could not be consumed") from exc
    if consumed is None:
        logger.warning("refresh token consumed concurrently", extra={"user_id": user_id})
        raise ExpiredRotation("refresh token already used")

    session = await issuer.issue(res.value, user_id=consumed)
    logger.info("refresh token rotated", extra={"user_id": consumed})
    return session


async def revoke_session(
    access_token: str | None,
    refresh_token: str | None,
    refresh_store: RefreshStorePort,
    session_cache: SessionCachePort,
) -> None:
    """Logout. Idempotent: missing records are fine."""
    if refresh_token:
        await _revoke_quietly(refresh_store, refresh_token)
    if access_token:
        await session_cache.delete(access_token)


async def _revoke_quietly(refresh_store: RefreshStorePort, token: str) -> None:
    try:
        await refresh_store.revoke(token)
    except Exception as exc:
        logger.warning("refresh token revoke failed", extra={"error": repr(exc)})
