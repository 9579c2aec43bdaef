from fastapi import Depends, HTTPException, Request, status

from authsession.application.issue_session import SessionIssuer
from authsession.application.mfa import MfaFlow
from authsession.application.resolve_identity import (
    IdentityResolver,
    extract_bearer_token,
)
from authsession.domain.entities import CachedIdentity
from authsession.domain.errors import AuthFailure
from authsession.domain.ports.identity_provider import IdentityProviderPort
from authsession.domain.ports.mfa_pending import MfaPendingStorePort
from authsession.domain.ports.refresh_store import RefreshStorePort
from authsession.domain.ports.session_cache import SessionCachePort
from authsession.domain.services import secure_compare
from authsession.infrastructure.redis_cache.mfa_pending import RedisMfaPendingStore
from authsession.infrastructure.redis_cache.pool import get_redis
from authsession.infrastructure.redis_cache.refresh_store import RedisRefreshStore
from authsession.infrastructure.redis_cache.session_cache import RedisSessionCache
from authsession.presentation.errors import auth_http_error
from authsession.settings import get_settings


def _cache_timeout_seconds() -> float:
    return get_settings().cache_timeout_ms / 1000


def get_session_cache() -> SessionCachePort:
    return RedisSessionCache(get_redis(), timeout_seconds=_cache_timeout_seconds())


def get_refresh_store() -> RefreshStorePort:
    return RedisRefreshStore(get_redis(), timeout_seconds=_cache_timeout_seconds())


def get_mfa_pending_store() -> MfaPendingStorePort:
    return RedisMfaPendingStore(get_redis(), timeout_seconds=_cache_timeout_seconds())


def get_identity_provider(request: Request) -> IdentityProviderPort:
    # This is set in authsession.main lifespan()
    return request.app.state.identity_provider


def get_session_issuer(
    session_cache: SessionCachePort = Depends(get_session_cache),
    refresh_store: RefreshStorePort = Depends(get_refresh_store),
) -> SessionIssuer:
    settings = get_settings()
    return SessionIssuer(
        session_cache=session_cache,
        refresh_store=refresh_store,
        refresh_ttl_days=settings.refresh_token_ttl_days,
        default_role=settings.default_role,
        access_cookie_name=settings.access_cookie_name,
        refresh_cookie_name=settings.refresh_cookie_name,
        refresh_cookie_path=settings.refresh_cookie_path,
        csrf_cookie_name=settings.csrf_cookie_name,
        secure=settings.is_production,
    )


def get_identity_resolver(
    provider: IdentityProviderPort = Depends(get_identity_provider),
    session_cache: SessionCachePort = Depends(get_session_cache),
    mfa_pending: MfaPendingStorePort = Depends(get_mfa_pending_store),
) -> IdentityResolver:
    return IdentityResolver(
        provider=provider,
        session_cache=session_cache,
        mfa_pending=mfa_pending,
        default_role=get_settings().default_role,
    )


def get_mfa_flow(
    provider: IdentityProviderPort = Depends(get_identity_provider),
    pending_store: MfaPendingStorePort = Depends(get_mfa_pending_store),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> MfaFlow:
    return MfaFlow(
        provider=provider,
        pending_store=pending_store,
        issuer=issuer,
        pending_ttl_seconds=get_settings().mfa_pending_ttl_seconds,
    )


def get_request_token(request: Request) -> str | None:
    return extract_bearer_token(
        request.headers.get("Authorization"),
        request.cookies.get(get_settings().access_cookie_name),
    )


async def require_identity(
    request: Request,
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> CachedIdentity:
    try:
        identity = await resolver.resolve(get_request_token(request))
    except AuthFailure as exc:
        raise auth_http_error(exc)
    request.state.identity = identity
    return identity


async def optional_identity(
    request: Request,
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> CachedIdentity | None:
    identity = await resolver.resolve_optional(get_request_token(request))
    if identity is not None:
        request.state.identity = identity
    return identity


def require_csrf(request: Request) -> None:
    """Double-submit check: X-CSRF-Token must match the CSRF cookie."""
    if request.method in ("GET", "HEAD", "OPTIONS"):
        return
    header = request.headers.get("X-CSRF-Token")
    cookie = request.cookies.get(get_settings().csrf_cookie_name)
    if not header or not cookie or not secure_compare(header, cookie):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="invalid csrf token"
        )
