from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from authsession.domain.entities import (
    AssuranceLevel,
    Challenge,
    EnrolledFactor,
    Factor,
    ProviderUser,
    TokenPair,
)
from authsession.domain.mfa import assurance_level
from authsession.domain.ports.identity_provider import IdentityProviderPort
from authsession.domain.result import Err, Ok, ProviderError, Result
from authsession.domain.services import token_assurance_claim


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {resp.status_code}"


def _parse_factor(raw: Dict[str, Any]) -> Factor:
    return Factor(
        id=raw["id"],
        factor_type=raw.get("factor_type", "totp"),
        status="verified" if raw.get("status") == "verified" else "unverified",
        friendly_name=raw.get("friendly_name"),
    )


def _parse_user(raw: Dict[str, Any]) -> ProviderUser:
    return ProviderUser(
        id=raw["id"],
        email=raw.get("email"),
        user_metadata=raw.get("user_metadata") or {},
        factors=[_parse_factor(f) for f in raw.get("factors") or []],
    )


def _parse_pair(raw: Dict[str, Any]) -> TokenPair:
    user = raw.get("user")
    return TokenPair(
        access_token=raw["access_token"],
        refresh_token=raw["refresh_token"],
        expires_in=int(raw.get("expires_in") or 3600),
        user=_parse_user(user) if user else None,
    )


class GoTrueIdentityProvider(IdentityProviderPort):
    """
    Identity provider adapter speaking the GoTrue (Supabase Auth) REST API.
    Responses are normalised into Ok/Err here so nothing above this layer
    deals with HTTP status codes or response shapes.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self, access_token: str | None) -> Dict[str, str]:
        headers: Dict[str, str] = {"apikey": self._api_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        access_token: str | None = None,
        json: Dict[str, Any] | None = None,
        params: Dict[str, str] | None = None,
    ) -> Result[Dict[str, Any]]:
        url = f"{self._base_url}/auth/v1{path}"
        try:
            resp = await self._client.request(
                method,
                url,
                headers=self._headers(access_token),
                json=json,
                params=params,
            )
        except httpx.HTTPError as e:
            return Err(
                ProviderError(f"identity provider unreachable: {e}", unavailable=True)
            )

        if resp.status_code >= 500:
            return Err(
                ProviderError(
                    _error_message(resp), status=resp.status_code, unavailable=True
                )
            )
        if not (200 <= resp.status_code < 300):
            return Err(ProviderError(_error_message(resp), status=resp.status_code))
        if not resp.content:
            return Ok({})
        try:
            body = resp.json()
        except ValueError:
            return Err(
                ProviderError("invalid JSON from identity provider", resp.status_code)
            )
        return Ok(body if isinstance(body, dict) else {})

    async def verify_token(self, token: str) -> Result[ProviderUser]:
        res = await self._request("GET", "/user", access_token=token)
        if isinstance(res, Err):
            return res
        if not res.value.get("id"):
            return Err(ProviderError("user not found", status=404))
        return Ok(_parse_user(res.value))

    async def sign_in_with_password(
        self, email: str, password: str
    ) -> Result[TokenPair]:
        res = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if isinstance(res, Err):
            return res
        try:
            return Ok(_parse_pair(res.value))
        except KeyError:
            return Err(ProviderError("sign-in returned no session"))

    async def refresh_session(self, refresh_token: str) -> Result[TokenPair]:
        res = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        if isinstance(res, Err):
            return res
        try:
            return Ok(_parse_pair(res.value))
        except KeyError:
            return Err(ProviderError("refresh returned no session"))

    async def list_factors(self, access_token: str) -> Result[list[Factor]]:
        res = await self.verify_token(access_token)
        if isinstance(res, Err):
            return res
        return Ok(res.value.factors)

    async def get_assurance_level(self, access_token: str) -> Result[AssuranceLevel]:
        if token_assurance_claim(access_token) is None:
            return Err(ProviderError("access token is not a JWT", status=401))
        factors = await self.list_factors(access_token)
        if isinstance(factors, Err):
            return factors
        return Ok(assurance_level(access_token, factors.value))

    async def enroll(
        self,
        access_token: str,
        factor_type: str = "totp",
        friendly_name: str | None = None,
    ) -> Result[EnrolledFactor]:
        payload: Dict[str, Any] = {"factor_type": factor_type}
        if friendly_name:
            payload["friendly_name"] = friendly_name
        res = await self._request(
            "POST", "/factors", access_token=access_token, json=payload
        )
        if isinstance(res, Err):
            return res
        totp = res.value.get("totp") or {}
        return Ok(
            EnrolledFactor(
                id=res.value["id"],
                qr_code=totp.get("qr_code"),
                secret=totp.get("secret"),
                uri=totp.get("uri"),
            )
        )

    async def unenroll(self, access_token: str, factor_id: str) -> Result[str]:
        res = await self._request(
            "DELETE", f"/factors/{factor_id}", access_token=access_token
        )
        if isinstance(res, Err):
            return res
        return Ok(res.value.get("id", factor_id))

    async def challenge(self, access_token: str, factor_id: str) -> Result[Challenge]:
        res = await self._request(
            "POST", f"/factors/{factor_id}/challenge", access_token=access_token
        )
        if isinstance(res, Err):
            return res
        return Ok(Challenge(id=res.value["id"], expires_at=res.value.get("expires_at")))

    async def verify(
        self, access_token: str, factor_id: str, challenge_id: str, code: str
    ) -> Result[TokenPair | None]:
        res = await self._request(
            "POST",
            f"/factors/{factor_id}/verify",
            access_token=access_token,
            json={"challenge_id": challenge_id, "code": code},
        )
        if isinstance(res, Err):
            return res
        if "access_token" in res.value and "refresh_token" in res.value:
            return Ok(_parse_pair(res.value))
        return Ok(None)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
