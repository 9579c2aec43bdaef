from fastapi import HTTPException, status

from authsession.domain.errors import (
    AuthFailure,
    ExpiredRotation,
    InvalidCredentials,
    InvalidToken,
    MfaEnrollmentFailed,
    MfaPendingExpired,
    MfaVerificationFailed,
    MissingToken,
    ProviderUnavailable,
    SecondFactorRequired,
)

# Most specific first; provider messages are only echoed for MFA failures.
_DETAILS: tuple[tuple[type[AuthFailure], str], ...] = (
    (MissingToken, "missing bearer token"),
    (SecondFactorRequired, "second factor required"),
    (InvalidToken, "invalid or expired token"),
    (InvalidCredentials, "invalid credentials"),
    (ExpiredRotation, "refresh failed"),
    (MfaPendingExpired, "mfa verification window expired"),
)


def auth_http_error(exc: AuthFailure) -> HTTPException:
    if isinstance(exc, ProviderUnavailable):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="identity provider unavailable",
        )
    if isinstance(exc, MfaEnrollmentFailed):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc) or "mfa error"
        )
    if isinstance(exc, MfaVerificationFailed):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc) or "mfa verification failed",
        )
    for cls, detail in _DETAILS:
        if isinstance(exc, cls):
            return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED, detail="authentication failed"
    )
