from typing import Iterable

from fastapi import APIRouter, Depends, Request, Response

from authsession.application.issue_session import SessionIssuer
from authsession.application.login import login_with_password
from authsession.application.mfa import MfaFlow
from authsession.application.refresh_session import (
    revoke_session,
    rotate_refresh_token,
)
from authsession.domain.entities import CachedIdentity, CookieSpec, SessionArtifacts
from authsession.domain.errors import AuthFailure
from authsession.domain.ports.identity_provider import IdentityProviderPort
from authsession.domain.ports.refresh_store import RefreshStorePort
from authsession.domain.ports.session_cache import SessionCachePort
from authsession.presentation.dependencies import (
    get_identity_provider,
    get_mfa_flow,
    get_refresh_store,
    get_request_token,
    get_session_cache,
    get_session_issuer,
    optional_identity,
    require_csrf,
    require_identity,
)
from authsession.presentation.errors import auth_http_error
from authsession.schemas.requests import (
    LoginIn,
    MfaCodeIn,
    MfaEnrollIn,
    MfaUnenrollIn,
    MfaVerifyLoginIn,
)
from authsession.schemas.responses import (
    EnrollOut,
    FactorOut,
    FactorsOut,
    IdentityOut,
    LoginOut,
    OkOut,
    SessionOut,
    SessionStateOut,
)
from authsession.settings import get_settings

router = APIRouter(prefix="/auth", tags=["Auth"])


def _set_cookies(response: Response, cookies: Iterable[CookieSpec]) -> None:
    for c in cookies:
        response.set_cookie(
            key=c.name,
            value=c.value,
            max_age=c.max_age,
            path=c.path,
            secure=c.secure,
            httponly=c.http_only,
            samesite=c.samesite,
        )


def _session_out(session: SessionArtifacts) -> SessionOut:
    return SessionOut(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
    )


@router.post("/login", response_model=LoginOut)
async def post_login(
    body: LoginIn,
    response: Response,
    provider: IdentityProviderPort = Depends(get_identity_provider),
    mfa: MfaFlow = Depends(get_mfa_flow),
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    try:
        result = await login_with_password(
            email=body.email,
            password=body.password,
            provider=provider,
            mfa=mfa,
            issuer=issuer,
        )
    except AuthFailure as exc:
        raise auth_http_error(exc)

    if result.mfa_required or result.session is None:
        # pending logins get no cookies at all
        return LoginOut(
            mfa_required=True,
            factor_id=result.factor_id,
            temp_token=result.pending_token,
        )

    _set_cookies(response, result.session.cookies)
    return LoginOut(mfa_required=False, session=_session_out(result.session))


@router.post("/refresh", response_model=OkOut)
async def post_refresh(
    request: Request,
    response: Response,
    provider: IdentityProviderPort = Depends(get_identity_provider),
    refresh_store: RefreshStorePort = Depends(get_refresh_store),
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    refresh_token = request.cookies.get(get_settings().refresh_cookie_name)
    try:
        session = await rotate_refresh_token(
            old_refresh_token=refresh_token or "",
            provider=provider,
            refresh_store=refresh_store,
            issuer=issuer,
        )
    except AuthFailure as exc:
        raise auth_http_error(exc)

    _set_cookies(response, session.cookies)
    return OkOut()


@router.post("/logout", response_model=OkOut)
async def post_logout(
    request: Request,
    response: Response,
    refresh_store: RefreshStorePort = Depends(get_refresh_store),
    session_cache: SessionCachePort = Depends(get_session_cache),
    issuer: SessionIssuer = Depends(get_session_issuer),
):
    await revoke_session(
        access_token=get_request_token(request),
        refresh_token=request.cookies.get(get_settings().refresh_cookie_name),
        refresh_store=refresh_store,
        session_cache=session_cache,
    )
    _set_cookies(response, issuer.clear_cookies())
    return OkOut()


@router.get("/me", response_model=IdentityOut)
async def get_me(identity: CachedIdentity = Depends(require_identity)):
    return IdentityOut(id=identity.id, email=identity.email, role=identity.role)


@router.post(
    "/mfa/enroll",
    response_model=EnrollOut,
    dependencies=[Depends(require_identity), Depends(require_csrf)],
)
async def post_mfa_enroll(
    request: Request,
    body: MfaEnrollIn | None = None,
    mfa: MfaFlow = Depends(get_mfa_flow),
):
    try:
        factor = await mfa.enroll(
            get_request_token(request), body.friendly_name if body else None
        )
    except AuthFailure as exc:
        raise auth_http_error(exc)
    return EnrollOut(
        factor_id=factor.id, qr_code=factor.qr_code, secret=factor.secret, uri=factor.uri
    )


@router.post(
    "/mfa/verify-setup",
    response_model=OkOut,
    dependencies=[Depends(require_identity), Depends(require_csrf)],
)
async def post_mfa_verify_setup(
    request: Request,
    response: Response,
    body: MfaCodeIn,
    mfa: MfaFlow = Depends(get_mfa_flow),
):
    try:
        session = await mfa.verify_enrollment(
            get_request_token(request), body.factor_id, body.code
        )
    except AuthFailure as exc:
        raise auth_http_error(exc)
    if session is not None:
        # the session is now aal2; swap the cookies for the upgraded pair
        _set_cookies(response, session.cookies)
    return OkOut()


@router.post("/mfa/verify-login", response_model=LoginOut)
async def post_mfa_verify_login(
    body: MfaVerifyLoginIn,
    response: Response,
    mfa: MfaFlow = Depends(get_mfa_flow),
):
    try:
        session = await mfa.verify_login(body.temp_token, body.factor_id, body.code)
    except AuthFailure as exc:
        raise auth_http_error(exc)

    _set_cookies(response, session.cookies)
    return LoginOut(mfa_required=False, session=_session_out(session))


@router.delete(
    "/mfa/unenroll",
    response_model=OkOut,
    dependencies=[Depends(require_identity), Depends(require_csrf)],
)
async def delete_mfa_unenroll(
    request: Request,
    body: MfaUnenrollIn,
    mfa: MfaFlow = Depends(get_mfa_flow),
):
    try:
        await mfa.unenroll(get_request_token(request), body.factor_id)
    except AuthFailure as exc:
        raise auth_http_error(exc)
    return OkOut()


@router.get(
    "/mfa/factors",
    response_model=FactorsOut,
    dependencies=[Depends(require_identity)],
)
async def get_mfa_factors(request: Request, mfa: MfaFlow = Depends(get_mfa_flow)):
    try:
        factors = await mfa.list_factors(get_request_token(request))
    except AuthFailure as exc:
        raise auth_http_error(exc)
    return FactorsOut(
        factors=[
            FactorOut(
                id=f.id,
                factor_type=f.factor_type,
                status=f.status,
                friendly_name=f.friendly_name,
            )
            for f in factors
        ]
    )


@router.get("/session", response_model=SessionStateOut)
async def get_session_state(
    identity: CachedIdentity | None = Depends(optional_identity),
):
    if identity is None:
        return SessionStateOut(authenticated=False)
    return SessionStateOut(
        authenticated=True,
        identity=IdentityOut(id=identity.id, email=identity.email, role=identity.role),
    )
