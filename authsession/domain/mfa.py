from __future__ import annotations

import enum
import json
from dataclasses import asdict, dataclass
from typing import Iterable

from authsession.domain.entities import AssuranceLevel, Factor
from authsession.domain.services import token_assurance_claim

LOWER_ASSURANCE = "aal1"
HIGHER_ASSURANCE = "aal2"


class SessionState(str, enum.Enum):
    CREDENTIALS_VERIFIED = "credentials_verified"
    PENDING_SECOND_FACTOR = "pending_second_factor"
    FULLY_AUTHENTICATED = "fully_authenticated"


@dataclass(frozen=True)
class PasswordDecision:
    state: SessionState
    factor: Factor | None = None


def assurance_level(access_token: str, factors: Iterable[Factor]) -> AssuranceLevel:
    """
    Assurance of a session from its token claims and the account's factors.
    A token whose claims cannot be read counts as the lower tier.
    """
    current = token_assurance_claim(access_token) or LOWER_ASSURANCE
    has_verified = any(f.is_verified for f in factors)
    return AssuranceLevel(
        current_level=current,
        next_level=HIGHER_ASSURANCE if has_verified else current,
    )


def next_state_after_password(
    assurance: AssuranceLevel, factors: Iterable[Factor]
) -> PasswordDecision:
    """
    CredentialsVerified -> PendingSecondFactor when the account has a verified
    factor and the session is still at the lower assurance tier; otherwise
    straight to FullyAuthenticated.
    """
    verified = [f for f in factors if f.is_verified]
    if verified and assurance.current_level == LOWER_ASSURANCE:
        return PasswordDecision(SessionState.PENDING_SECOND_FACTOR, verified[0])
    return PasswordDecision(SessionState.FULLY_AUTHENTICATED)


def requires_second_factor(access_token: str, factors: list[Factor]) -> bool:
    """True while a token is one the password step alone would leave pending."""
    decision = next_state_after_password(assurance_level(access_token, factors), factors)
    return decision.state is SessionState.PENDING_SECOND_FACTOR


@dataclass(frozen=True)
class MfaPending:
    """A login waiting for its second factor. Consumed exactly once."""

    access_token: str
    user_id: str
    factor_id: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "MfaPending":
        data = json.loads(raw)
        return cls(
            access_token=data["access_token"],
            user_id=data["user_id"],
            factor_id=data["factor_id"],
            expires_at=float(data["expires_at"]),
        )
