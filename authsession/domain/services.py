# authsession/domain/services.py
from __future__ import annotations

import hmac
import secrets
import time

import jwt

EXPIRY_BUFFER_SECONDS = 30
MIN_CACHE_TTL_SECONDS = 60
MAX_CACHE_TTL_SECONDS = 6 * 60 * 60
FALLBACK_CACHE_TTL_SECONDS = 5 * 60
CSRF_COOKIE_TTL_SECONDS = 24 * 60 * 60


def _now(now: float | None) -> int:
    return int(time.time() if now is None else now)


def _unverified_claims(token: str) -> dict | None:
    try:
        claims = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
        )
    except Exception:
        return None
    return claims if isinstance(claims, dict) else None


def token_expiry(token: str) -> int | None:
    """
    Read the `exp` claim WITHOUT verifying the signature.
    Returns None if the token cannot be decoded or has no usable claim.
    """
    claims = _unverified_claims(token)
    exp = claims.get("exp") if claims is not None else None
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    return int(exp)


def token_remaining_seconds(token: str, now: float | None = None) -> int | None:
    exp = token_expiry(token)
    if exp is None:
        return None
    return exp - _now(now)


def token_assurance_claim(token: str) -> str | None:
    """
    The `aal` claim, unverified. "aal1" when a decodable token carries none;
    None when the token is not a JWT at all.
    """
    claims = _unverified_claims(token)
    if claims is None:
        return None
    aal = claims.get("aal")
    return aal if isinstance(aal, str) and aal else "aal1"


def token_cache_ttl(token: str, now: float | None = None) -> int:
    """
    Cache lifetime for a bearer token: expiry - now - 30s, clamped to
    [60s, 6h]. Falls back to 5 minutes when the expiry is unknown.
    Never raises.
    """
    remaining = token_remaining_seconds(token, now)
    if remaining is None:
        return FALLBACK_CACHE_TTL_SECONDS
    ttl = remaining - EXPIRY_BUFFER_SECONDS
    return max(MIN_CACHE_TTL_SECONDS, min(ttl, MAX_CACHE_TTL_SECONDS))


def cacheable_ttl(token: str, now: float | None = None) -> int | None:
    """
    Like token_cache_ttl(), but None when the 60s floor would let the cache
    entry outlive the token itself.
    """
    ttl = token_cache_ttl(token, now)
    remaining = token_remaining_seconds(token, now)
    if remaining is not None and remaining <= ttl:
        return None
    return ttl


def mfa_pending_ttl(
    token: str, pending_ttl_seconds: int, now: float | None = None
) -> int | None:
    """
    Lifetime of the pending-MFA record for `token`: the configured window,
    but never past the token's own expiry (minus the usual buffer).
    None if the token has no usable lifetime left.
    """
    remaining = token_remaining_seconds(token, now)
    if remaining is None:
        return pending_ttl_seconds
    usable = remaining - EXPIRY_BUFFER_SECONDS
    if usable <= 0:
        return None
    return min(pending_ttl_seconds, usable)


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def secure_compare(a: str, b: str) -> bool:
    """Constant-time comparison; header values may carry non-ASCII characters."""
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
