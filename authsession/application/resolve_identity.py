from __future__ import annotations

import logging
import time
from typing import Callable

from authsession.application.provider_errors import raise_for_provider_error
from authsession.domain.entities import CachedIdentity
from authsession.domain.errors import (
    AuthFailure,
    InvalidToken,
    MissingToken,
    SecondFactorRequired,
)
from authsession.domain.mfa import requires_second_factor
from authsession.domain.ports.identity_provider import IdentityProviderPort
from authsession.domain.ports.mfa_pending import MfaPendingStorePort
from authsession.domain.ports.session_cache import SessionCachePort
from authsession.domain.result import Err
from authsession.domain.services import cacheable_ttl

logger = logging.getLogger(__name__)


def extract_bearer_token(
    authorization: str | None, cookie_token: str | None
) -> str | None:
    """`Authorization: Bearer <token>` first, then the session cookie."""
    if authorization:
        scheme, _, credentials = authorization.strip().partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    if cookie_token and cookie_token.strip():
        return cookie_token.strip()
    return None


class IdentityResolver:
    def __init__(
        self,
        *,
        provider: IdentityProviderPort,
        session_cache: SessionCachePort,
        mfa_pending: MfaPendingStorePort,
        default_role: str = "cliente",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._provider = provider
        self._cache = session_cache
        self._pending = mfa_pending
        self._default_role = default_role
        self._clock = clock

    async def resolve(self, token: str | None) -> CachedIdentity:
        """
        Cached identity if we have one; otherwise verify with the provider
        and cache the result for the token's remaining lifetime.

        Raises MissingToken, InvalidToken (SecondFactorRequired for a login
        still waiting on MFA) or ProviderUnavailable.
        """
        if not token:
            raise MissingToken("no bearer token")

        cached = await self._cache.lookup(token)
        if cached is not None:
            return cached

        if await self._is_pending_second_factor(token):
            raise SecondFactorRequired("second factor verification pending")

        res = await self._provider.verify_token(token)
        if isinstance(res, Err):
            raise_for_provider_error(res.error, InvalidToken)
        user = res.value
        if requires_second_factor(token, user.factors):
            # the provider accepts aal1 tokens for their whole lifetime, with or
            # without a live pending record
            raise SecondFactorRequired("second factor not verified for this session")

        identity = CachedIdentity(
            id=user.id, email=user.email, role=user.role(self._default_role)
        )
        ttl = cacheable_ttl(token, self._clock())
        if ttl is not None:
            await self._cache.store(token, identity, ttl)
        return identity

    async def resolve_optional(self, token: str | None) -> CachedIdentity | None:
        """Same as resolve(), but anonymous (None) instead of any failure."""
        if not token:
            return None
        try:
            return await self.resolve(token)
        except AuthFailure as exc:
            logger.debug("optional auth ignored", extra={"reason": type(exc).__name__})
            return None

    async def _is_pending_second_factor(self, token: str) -> bool:
        try:
            return await self._pending.get(token) is not None
        except Exception as exc:
            logger.debug("mfa pending lookup failed", extra={"error": repr(exc)})
            return False
