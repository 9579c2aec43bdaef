import pytest

from authsession.application.login import login_with_password
from authsession.application.resolve_identity import (
    IdentityResolver,
    extract_bearer_token,
)
from authsession.domain.entities import CachedIdentity, Factor
from authsession.domain.errors import (
    InvalidToken,
    MissingToken,
    ProviderUnavailable,
    SecondFactorRequired,
)
from authsession.domain.mfa import MfaPending
from tests.fakes import FailingStore, make_token

VERIFIED = Factor(id="f1", status="verified")


@pytest.mark.parametrize(
    "authorization, cookie, expected",
    [
        ("Bearer abc", None, "abc"),
        ("bearer   abc  ", None, "abc"),
        ("Bearer abc", "from-cookie", "abc"),
        (None, "from-cookie", "from-cookie"),
        ("Basic dXNlcjpwdw==", "from-cookie", "from-cookie"),
        ("Bearer ", "from-cookie", "from-cookie"),
        (None, None, None),
        ("", "  ", None),
    ],
)
def test_extract_bearer_token(authorization, cookie, expected):
    assert extract_bearer_token(authorization, cookie) == expected


@pytest.mark.asyncio
async def test_second_lookup_is_served_from_cache(resolver, provider):
    provider.add_user("u1", "a@x.com", "Valid1!", role="admin")
    token = provider.mint("u1").access_token

    first = await resolver.resolve(token)
    second = await resolver.resolve(token)

    assert first == second == CachedIdentity(id="u1", email="a@x.com", role="admin")
    assert provider.calls["verify_token"] == 1


@pytest.mark.asyncio
async def test_cache_ttl_follows_token_expiry(resolver, provider, session_cache):
    provider.add_user("u1", "a@x.com", "Valid1!")
    provider.access_ttl = 900
    token = provider.mint("u1").access_token

    await resolver.resolve(token)

    assert session_cache.ttls[token] == 870


@pytest.mark.asyncio
async def test_cache_expiry_forces_new_verification(resolver, provider, clock):
    provider.add_user("u1", "a@x.com", "Valid1!")
    token = provider.mint("u1").access_token

    await resolver.resolve(token)
    clock.advance(3600 - 30)
    await resolver.resolve(token)

    assert provider.calls["verify_token"] == 2


@pytest.mark.asyncio
async def test_role_defaults_when_metadata_has_none(resolver, provider):
    provider.add_user("u1", "a@x.com", "Valid1!")
    token = provider.mint("u1").access_token

    identity = await resolver.resolve(token)

    assert identity.role == "cliente"


@pytest.mark.asyncio
async def test_missing_token(resolver, provider):
    with pytest.raises(MissingToken):
        await resolver.resolve(None)
    with pytest.raises(MissingToken):
        await resolver.resolve("")
    assert provider.calls["verify_token"] == 0


@pytest.mark.asyncio
async def test_rejected_token_is_invalid_and_not_cached(resolver, provider, session_cache):
    with pytest.raises(InvalidToken):
        await resolver.resolve("forged")
    assert not session_cache.has("forged")


@pytest.mark.asyncio
async def test_provider_outage_is_distinct_from_invalid_token(resolver, provider):
    provider.add_user("u1", "a@x.com", "Valid1!")
    token = provider.mint("u1").access_token
    provider.unavailable = True

    with pytest.raises(ProviderUnavailable):
        await resolver.resolve(token)


@pytest.mark.asyncio
async def test_token_about_to_expire_is_not_cached(resolver, provider, session_cache):
    provider.add_user("u1", "a@x.com", "Valid1!")
    provider.access_ttl = 50
    token = provider.mint("u1").access_token

    identity = await resolver.resolve(token)

    assert identity.id == "u1"
    assert not session_cache.has(token)


@pytest.mark.asyncio
async def test_pending_second_factor_token_does_not_resolve(
    resolver, provider, pending_store, clock
):
    provider.add_user("u1", "a@x.com", "Valid1!", factors=(VERIFIED,))
    token = provider.mint("u1").access_token
    await pending_store.put(MfaPending(token, "u1", "f1", clock() + 300), 300)

    with pytest.raises(SecondFactorRequired):
        await resolver.resolve(token)
    assert provider.calls["verify_token"] == 0


@pytest.mark.asyncio
async def test_optional_resolution_swallows_failures(resolver, provider):
    assert await resolver.resolve_optional(None) is None
    assert await resolver.resolve_optional("forged") is None

    provider.add_user("u1", "a@x.com", "Valid1!")
    token = provider.mint("u1").access_token
    provider.unavailable = True
    assert await resolver.resolve_optional(token) is None

    provider.unavailable = False
    identity = await resolver.resolve_optional(token)
    assert identity is not None and identity.id == "u1"


@pytest.mark.asyncio
async def test_cached_identity_wins_even_if_provider_is_down(
    resolver, provider, session_cache, clock
):
    token = make_token("u9", now=clock())
    await session_cache.store(token, CachedIdentity("u9", None, "cliente"), 120)
    provider.unavailable = True

    identity = await resolver.resolve(token)

    assert identity.id == "u9"
    assert provider.calls["verify_token"] == 0


@pytest.mark.asyncio
async def test_pending_token_still_rejected_after_window(
    resolver, provider, mfa, issuer, session_cache, clock
):
    provider.add_user("u1", "a@x.com", "Valid1!", factors=(VERIFIED,))
    result = await login_with_password(
        email="a@x.com", password="Valid1!", provider=provider, mfa=mfa, issuer=issuer
    )
    clock.advance(6 * 60)

    with pytest.raises(SecondFactorRequired):
        await resolver.resolve(result.pending_token)
    assert not session_cache.has(result.pending_token)
    assert await resolver.resolve_optional(result.pending_token) is None


@pytest.mark.asyncio
async def test_pending_token_rejected_when_pending_store_is_down(
    provider, session_cache, clock
):
    resolver = IdentityResolver(
        provider=provider,
        session_cache=session_cache,
        mfa_pending=FailingStore(),
        clock=clock,
    )
    provider.add_user("u1", "a@x.com", "Valid1!", factors=(VERIFIED,))
    token = provider.mint("u1", aal="aal1").access_token

    with pytest.raises(SecondFactorRequired):
        await resolver.resolve(token)
    assert not session_cache.has(token)


@pytest.mark.asyncio
async def test_opaque_token_of_mfa_account_counts_as_lower_tier(resolver, provider):
    provider.add_user("u1", "a@x.com", "Valid1!", factors=(VERIFIED,))
    provider.access_tokens["opaque-token"] = "u1"

    with pytest.raises(SecondFactorRequired):
        await resolver.resolve("opaque-token")


@pytest.mark.asyncio
async def test_aal2_token_of_mfa_account_resolves(resolver, provider, session_cache):
    provider.add_user("u1", "a@x.com", "Valid1!", factors=(VERIFIED,))
    token = provider.mint("u1", aal="aal2").access_token

    identity = await resolver.resolve(token)

    assert identity.id == "u1"
    assert session_cache.has(token)


@pytest.mark.asyncio
async def test_aal1_token_without_verified_factor_resolves(resolver, provider):
    provider.add_user(
        "u1", "a@x.com", "Valid1!", factors=(Factor(id="f2", status="unverified"),)
    )
    token = provider.mint("u1", aal="aal1").access_token

    assert (await resolver.resolve(token)).id == "u1"
