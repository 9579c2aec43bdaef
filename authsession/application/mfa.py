from __future__ import annotations

import logging
import time
from typing import Callable

from authsession.application.issue_session import SessionIssuer
from authsession.application.provider_errors import raise_for_provider_error
from authsession.domain.entities import (
    EnrolledFactor,
    Factor,
    SessionArtifacts,
    TokenPair,
)
from authsession.domain.errors import (
    AuthFailure,
    InvalidToken,
    MfaEnrollmentFailed,
    MfaPendingExpired,
    MfaVerificationFailed,
)
from authsession.domain.mfa import (
    MfaPending,
    PasswordDecision,
    SessionState,
    assurance_level,
    next_state_after_password,
)
from authsession.domain.ports.identity_provider import IdentityProviderPort
from authsession.domain.ports.mfa_pending import MfaPendingStorePort
from authsession.domain.result import Err
from authsession.domain.services import mfa_pending_ttl

logger = logging.getLogger(__name__)


class MfaFlow:
    """
    Second-factor upgrade of a password login.

    CredentialsVerified --(verified factor, aal1)--> PendingSecondFactor
    PendingSecondFactor --(code accepted)--> FullyAuthenticated
    CredentialsVerified --(otherwise)--> FullyAuthenticated

    The pending window lives in the MfaPendingStore; when its record is gone
    the login has to start again from credentials.
    """

    def __init__(
        self,
        *,
        provider: IdentityProviderPort,
        pending_store: MfaPendingStorePort,
        issuer: SessionIssuer,
        pending_ttl_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._provider = provider
        self._pending = pending_store
        self._issuer = issuer
        self._pending_ttl = pending_ttl_seconds
        self._clock = clock

    async def decide(self, access_token: str) -> PasswordDecision:
        # one /user round-trip: the assurance tier comes from the token claims
        factors = await self._provider.list_factors(access_token)
        if isinstance(factors, Err):
            raise_for_provider_error(factors.error, InvalidToken)
        return next_state_after_password(
            assurance_level(access_token, factors.value), factors.value
        )

    async def start_pending(self, pair: TokenPair, factor: Factor) -> MfaPending:
        if pair.user is None:
            raise InvalidToken("sign-in returned no user")
        now = self._clock()
        ttl = mfa_pending_ttl(pair.access_token, self._pending_ttl, now)
        if ttl is None:
            raise InvalidToken("access token expires before a second factor can be verified")
        pending = MfaPending(
            access_token=pair.access_token,
            user_id=pair.user.id,
            factor_id=factor.id,
            expires_at=now + ttl,
        )
        try:
            await self._pending.put(pending, ttl)
        except Exception as exc:
            logger.error("mfa pending record not saved", extra={"error": repr(exc)})
            raise AuthFailure("could not start second factor verification") from exc

        logger.info(
            "second factor required",
            extra={"user_id": pending.user_id, "state": SessionState.PENDING_SECOND_FACTOR.value},
        )
        return pending

    async def verify_login(
        self, pending_token: str, factor_id: str, code: str
    ) -> SessionArtifacts:
        """
        Complete a pending login. A rejected code leaves the pending record in
        place so the user can retry inside the same window.
        """
        pending = await self._pending_record(pending_token)
        if pending is None or pending.is_expired(self._clock()):
            raise MfaPendingExpired("second factor window expired, log in again")

        pair = await self._challenge_and_verify(pending_token, factor_id, code)
        if pair is None:
            raise MfaVerificationFailed("identity provider returned no session")

        try:
            consumed = await self._pending.consume(pending_token)
        except Exception as exc:
            logger.warning("mfa pending consume failed", extra={"error": repr(exc)})
            consumed = None
        if consumed is None:
            raise MfaPendingExpired("second factor window expired, log in again")

        session = await self._issuer.issue(pair, user_id=consumed.user_id)
        logger.info(
            "second factor verified",
            extra={"user_id": consumed.user_id, "state": SessionState.FULLY_AUTHENTICATED.value},
        )
        return session

    async def enroll(
        self, access_token: str, friendly_name: str | None = None
    ) -> EnrolledFactor:
        """Enroll a TOTP factor after pruning stale unverified ones."""
        factors = await self.list_factors(access_token)
        for factor in factors:
            if factor.is_verified:
                continue
            res = await self._provider.unenroll(access_token, factor.id)
            if isinstance(res, Err):
                raise_for_provider_error(res.error, MfaEnrollmentFailed)
            logger.info("stale factor unenrolled", extra={"factor_id": factor.id})

        res = await self._provider.enroll(access_token, "totp", friendly_name)
        if isinstance(res, Err):
            raise_for_provider_error(res.error, MfaEnrollmentFailed)
        return res.value

    async def verify_enrollment(
        self, access_token: str, factor_id: str, code: str
    ) -> SessionArtifacts | None:
        """
        Activate a freshly enrolled factor. The provider upgrades the session
        to aal2; when it hands back the new pair it replaces the current one.
        """
        pair = await self._challenge_and_verify(access_token, factor_id, code)
        if pair is None:
            return None
        return await self._issuer.issue(pair)

    async def unenroll(self, access_token: str, factor_id: str) -> str:
        res = await self._provider.unenroll(access_token, factor_id)
        if isinstance(res, Err):
            raise_for_provider_error(res.error, MfaEnrollmentFailed)
        return res.value

    async def list_factors(self, access_token: str) -> list[Factor]:
        res = await self._provider.list_factors(access_token)
        if isinstance(res, Err):
            raise_for_provider_error(res.error, MfaEnrollmentFailed)
        return res.value

    async def _challenge_and_verify(
        self, access_token: str, factor_id: str, code: str
    ) -> TokenPair | None:
        challenge = await self._provider.challenge(access_token, factor_id)
        if isinstance(challenge, Err):
            raise_for_provider_error(challenge.error, MfaVerificationFailed)
        res = await self._provider.verify(
            access_token, factor_id, challenge.value.id, code
        )
        if isinstance(res, Err):
            raise_for_provider_error(res.error, MfaVerificationFailed)
        return res.value

    async def _pending_record(self, pending_token: str) -> MfaPending | None:
        try:
            return await self._pending.get(pending_token)
        except Exception as exc:
            logger.warning("mfa pending lookup failed", extra={"error": repr(exc)})
            return None
