class DomainError(Exception):
    """Base class for all domain-level errors."""

    pass


class AuthFailure(DomainError):
    """Authentication could not be established or continued."""

    pass


class MissingToken(AuthFailure):
    """No bearer token in the Authorization header nor in the session cookie."""

    pass


class InvalidToken(AuthFailure):
    """The identity provider rejected the token or returned no user."""

    pass


class SecondFactorRequired(InvalidToken):
    """The token belongs to a login still waiting for its second factor."""

    pass


class InvalidCredentials(AuthFailure):
    """Email/password sign-in was rejected by the identity provider."""

    pass


class ExpiredRotation(AuthFailure):
    """The refresh token is unknown, expired or was already rotated out."""

    pass


class MfaPendingExpired(AuthFailure):
    """No pending second-factor login for this token (expired or already used)."""

    pass


class MfaVerificationFailed(AuthFailure):
    """The provider refused the challenge or the one-time code."""

    pass


class ProviderUnavailable(AuthFailure):
    """Network error or timeout talking to the identity provider; retryable."""

    pass


class MfaEnrollmentFailed(AuthFailure):
    """The provider refused to list, enroll or unenroll a factor."""

    pass
