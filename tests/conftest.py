import pytest

from authsession.application.issue_session import SessionIssuer
from authsession.application.mfa import MfaFlow
from authsession.application.resolve_identity import IdentityResolver
from tests.fakes import (
    FakeClock,
    FakeIdentityProvider,
    InMemoryMfaPendingStore,
    InMemoryRefreshStore,
    InMemorySessionCache,
)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def provider(clock):
    return FakeIdentityProvider(clock)


@pytest.fixture()
def session_cache(clock):
    return InMemorySessionCache(clock)


@pytest.fixture()
def refresh_store(clock):
    return InMemoryRefreshStore(clock)


@pytest.fixture()
def pending_store(clock):
    return InMemoryMfaPendingStore(clock)


@pytest.fixture()
def issuer(session_cache, refresh_store, clock):
    return SessionIssuer(
        session_cache=session_cache, refresh_store=refresh_store, clock=clock
    )


@pytest.fixture()
def resolver(provider, session_cache, pending_store, clock):
    return IdentityResolver(
        provider=provider,
        session_cache=session_cache,
        mfa_pending=pending_store,
        clock=clock,
    )


@pytest.fixture()
def mfa(provider, pending_store, issuer, clock):
    return MfaFlow(
        provider=provider, pending_store=pending_store, issuer=issuer, clock=clock
    )
