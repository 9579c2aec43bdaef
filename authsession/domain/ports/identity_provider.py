from __future__ import annotations

from typing import Protocol

from authsession.domain.entities import (
    AssuranceLevel,
    Challenge,
    EnrolledFactor,
    Factor,
    ProviderUser,
    TokenPair,
)
from authsession.domain.result import Result


class IdentityProviderPort(Protocol):
    """
    External identity provider. Every call returns Ok(value) or Err(ProviderError);
    adapters never raise for provider-side failures.
    """

    async def verify_token(self, token: str) -> Result[ProviderUser]:
        """Verify the bearer token and return its user."""

    async def sign_in_with_password(
        self, email: str, password: str
    ) -> Result[TokenPair]:
        """Password grant."""

    async def refresh_session(self, refresh_token: str) -> Result[TokenPair]:
        """Refresh grant; the provider mints a new access/refresh pair."""

    async def get_assurance_level(self, access_token: str) -> Result[AssuranceLevel]:
        """Current and next assurance level (aal1 / aal2) of the session."""

    async def list_factors(self, access_token: str) -> Result[list[Factor]]:
        """All second factors of the account, verified or not."""

    async def enroll(
        self,
        access_token: str,
        factor_type: str = "totp",
        friendly_name: str | None = None,
    ) -> Result[EnrolledFactor]:
        """Start enrolling a new (unverified) factor."""

    async def unenroll(self, access_token: str, factor_id: str) -> Result[str]:
        """Remove a factor; returns its id."""

    async def challenge(self, access_token: str, factor_id: str) -> Result[Challenge]:
        """Open a challenge for the factor."""

    async def verify(
        self, access_token: str, factor_id: str, challenge_id: str, code: str
    ) -> Result[TokenPair | None]:
        """Submit the one-time code; returns the upgraded session if any."""
