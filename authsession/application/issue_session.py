from __future__ import annotations

import logging
import time
from typing import Callable

from authsession.domain.entities import (
    CachedIdentity,
    CookieSpec,
    SessionArtifacts,
    TokenPair,
)
from authsession.domain.ports.refresh_store import RefreshStorePort
from authsession.domain.ports.session_cache import SessionCachePort
from authsession.domain.services import (
    CSRF_COOKIE_TTL_SECONDS,
    cacheable_ttl,
    generate_csrf_token,
    token_cache_ttl,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class SessionIssuer:
    """
    Turns a freshly minted access/refresh pair into a completed session:
    cache entry, refresh record, and the cookies handed to the client.
    Only full sessions (login, MFA completion, rotation) come through here.
    """

    def __init__(
        self,
        *,
        session_cache: SessionCachePort,
        refresh_store: RefreshStorePort,
        refresh_ttl_days: int = 7,
        default_role: str = "cliente",
        access_cookie_name: str = "sb_access_token",
        refresh_cookie_name: str = "sb_refresh_token",
        refresh_cookie_path: str = "/v1/auth",
        csrf_cookie_name: str = "csrf_token",
        secure: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache = session_cache
        self._refresh = refresh_store
        self._refresh_ttl_days = refresh_ttl_days
        self._default_role = default_role
        self._access_cookie = access_cookie_name
        self._refresh_cookie = refresh_cookie_name
        self._refresh_path = refresh_cookie_path
        self._csrf_cookie = csrf_cookie_name
        self._secure = secure
        self._clock = clock

    @property
    def refresh_ttl_days(self) -> int:
        return self._refresh_ttl_days

    async def issue(
        self, pair: TokenPair, *, user_id: str | None = None
    ) -> SessionArtifacts:
        now = self._clock()
        owner = pair.user.id if pair.user else user_id

        if pair.user is not None:
            ttl = cacheable_ttl(pair.access_token, now)
            if ttl is not None:
                identity = CachedIdentity(
                    id=pair.user.id,
                    email=pair.user.email,
                    role=pair.user.role(self._default_role),
                )
                await self._cache.store(pair.access_token, identity, ttl)

        if owner is not None:
            try:
                await self._refresh.save(
                    pair.refresh_token, owner, self._refresh_ttl_days
                )
            except Exception as exc:
                # the session still works until the access token expires;
                # the next refresh will fail and send the user back to login
                logger.warning(
                    "refresh record not saved", extra={"error": repr(exc)}
                )
        else:
            logger.warning("session issued without a user id; no refresh record")

        csrf = generate_csrf_token()
        cookies = [
            self._access_cookie_spec(pair.access_token, now),
            self._refresh_cookie_spec(pair.refresh_token),
            self._expired(self._access_cookie, path=self._refresh_path),
            self._csrf_cookie_spec(csrf),
        ]
        return SessionArtifacts(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            expires_in=pair.expires_in,
            csrf_token=csrf,
            cookies=cookies,
            user_id=owner,
        )

    def clear_cookies(self) -> list[CookieSpec]:
        return [
            self._expired(self._access_cookie, path="/"),
            self._expired(self._access_cookie, path=self._refresh_path),
            self._expired(self._refresh_cookie, path=self._refresh_path),
            self._expired(self._csrf_cookie, path="/", http_only=False),
        ]

    def _access_cookie_spec(self, access_token: str, now: float) -> CookieSpec:
        return CookieSpec(
            name=self._access_cookie,
            value=access_token,
            max_age=token_cache_ttl(access_token, now),
            path="/",
            secure=self._secure,
        )

    def _refresh_cookie_spec(self, refresh_token: str) -> CookieSpec:
        return CookieSpec(
            name=self._refresh_cookie,
            value=refresh_token,
            max_age=self._refresh_ttl_days * SECONDS_PER_DAY,
            path=self._refresh_path,
            secure=self._secure,
        )

    def _csrf_cookie_spec(self, value: str) -> CookieSpec:
        # readable by client script so it can echo it in X-CSRF-Token
        return CookieSpec(
            name=self._csrf_cookie,
            value=value,
            max_age=CSRF_COOKIE_TTL_SECONDS,
            path="/",
            http_only=False,
            secure=self._secure,
        )

    def _expired(self, name: str, *, path: str, http_only: bool = True) -> CookieSpec:
        return CookieSpec(
            name=name,
            value="",
            max_age=0,
            path=path,
            http_only=http_only,
            secure=self._secure,
        )
