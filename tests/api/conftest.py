import pytest
from fastapi.testclient import TestClient

from authsession.main import create_app
from authsession.presentation.dependencies import (
    get_identity_provider,
    get_mfa_pending_store,
    get_refresh_store,
    get_session_cache,
)

EMAIL = "a@x.com"
PASSWORD = "Valid1!"


@pytest.fixture()
def app(provider, session_cache, refresh_store, pending_store):
    app = create_app()

    app.dependency_overrides[get_identity_provider] = lambda: provider
    app.dependency_overrides[get_session_cache] = lambda: session_cache
    app.dependency_overrides[get_refresh_store] = lambda: refresh_store
    app.dependency_overrides[get_mfa_pending_store] = lambda: pending_store

    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    # no `with`: the lifespan (real Redis / HTTP client) is never started
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def user(provider):
    return provider.add_user("u1", EMAIL, PASSWORD, role="admin")


def login(client: TestClient, email: str = EMAIL, password: str = PASSWORD):
    return client.post("/v1/auth/login", json={"email": email, "password": password})


def csrf_headers(client: TestClient) -> dict[str, str]:
    return {"X-CSRF-Token": client.cookies.get("csrf_token") or ""}
