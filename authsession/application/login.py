import logging

from authsession.application.issue_session import SessionIssuer
from authsession.application.mfa import MfaFlow
from authsession.application.provider_errors import raise_for_provider_error
from authsession.domain.entities import LoginResult
from authsession.domain.errors import InvalidCredentials
from authsession.domain.mfa import SessionState
from authsession.domain.ports.identity_provider import IdentityProviderPort
from authsession.domain.result import Err

logger = logging.getLogger(__name__)


async def login_with_password(
    email: str,
    password: str,
    provider: IdentityProviderPort,
    mfa: MfaFlow,
    issuer: SessionIssuer,
) -> LoginResult:
    normalized_email = email.strip().lower()

    res = await provider.sign_in_with_password(normalized_email, password)
    if isinstance(res, Err):
        raise_for_provider_error(res.error, InvalidCredentials)
    pair = res.value
    if pair.user is None:
        raise InvalidCredentials("sign-in returned no user")
    logger.info(
        "password accepted",
        extra={"user_id": pair.user.id, "state": SessionState.CREDENTIALS_VERIFIED.value},
    )

    decision = await mfa.decide(pair.access_token)
    if decision.state is SessionState.PENDING_SECOND_FACTOR and decision.factor:
        # no cache entry, no refresh record, no CSRF until the factor is verified
        pending = await mfa.start_pending(pair, decision.factor)
        return LoginResult(
            mfa_required=True,
            factor_id=pending.factor_id,
            pending_token=pending.access_token,
        )

    session = await issuer.issue(pair)
    logger.info(
        "login succeeded",
        extra={"user_id": pair.user.id, "state": SessionState.FULLY_AUTHENTICATED.value},
    )
    return LoginResult(mfa_required=False, session=session)
