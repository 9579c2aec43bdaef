from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Literal


@dataclass(frozen=True)
class CachedIdentity:
    """Minimal identity kept in the session cache, keyed by the bearer token."""

    id: str
    email: str | None
    role: str

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "CachedIdentity":
        data = json.loads(raw)
        return cls(id=data["id"], email=data.get("email"), role=data["role"])


@dataclass(frozen=True)
class Factor:
    id: str
    factor_type: str = "totp"
    status: Literal["verified", "unverified"] = "unverified"
    friendly_name: str | None = None

    @property
    def is_verified(self) -> bool:
        return self.status == "verified"


@dataclass
class ProviderUser:
    id: str
    email: str | None = None
    user_metadata: dict[str, Any] = field(default_factory=dict)
    factors: list[Factor] = field(default_factory=list)

    def role(self, default: str) -> str:
        return self.user_metadata.get("role") or default


@dataclass(frozen=True)
class AssuranceLevel:
    current_level: str | None
    next_level: str | None


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    user: ProviderUser | None = None


@dataclass(frozen=True)
class Challenge:
    id: str
    expires_at: int | None = None


@dataclass(frozen=True)
class EnrolledFactor:
    id: str
    qr_code: str | None = None
    secret: str | None = None
    uri: str | None = None


@dataclass(frozen=True)
class CookieSpec:
    name: str
    value: str
    max_age: int
    path: str = "/"
    http_only: bool = True
    secure: bool = False
    samesite: Literal["lax", "strict", "none"] = "lax"


@dataclass
class SessionArtifacts:
    access_token: str
    refresh_token: str
    expires_in: int
    csrf_token: str
    cookies: list[CookieSpec]
    user_id: str | None = None


@dataclass
class LoginResult:
    mfa_required: bool
    factor_id: str | None = None
    pending_token: str | None = None
    session: SessionArtifacts | None = None
