import pytest

from authsession.infrastructure.http import client as http_client_mod
from authsession.settings import get_settings


@pytest.fixture(autouse=True)
async def reset_http_client():
    """Each test starts and ends without a shared client."""
    if http_client_mod._client is not None:
        await http_client_mod.close_http_client()
    get_settings.cache_clear()

    yield

    if http_client_mod._client is not None:
        await http_client_mod.close_http_client()
    get_settings.cache_clear()


async def test_get_before_open_raises():
    with pytest.raises(RuntimeError):
        http_client_mod.get_http_client()


async def test_open_is_a_singleton():
    c1 = await http_client_mod.open_http_client()
    c2 = await http_client_mod.open_http_client()

    assert c1 is c2
    assert http_client_mod.get_http_client() is c1
    assert not c1.is_closed


async def test_timeout_comes_from_provider_setting(monkeypatch):
    monkeypatch.setenv("PROVIDER_TIMEOUT_SECONDS", "2.5")
    get_settings.cache_clear()

    client = await http_client_mod.open_http_client()

    assert float(client.timeout.connect) == pytest.approx(2.5)
    assert float(client.timeout.read) == pytest.approx(2.5)


async def test_close_is_idempotent_and_reopen_gives_new_client():
    c1 = await http_client_mod.open_http_client()
    await http_client_mod.close_http_client()
    await http_client_mod.close_http_client()
    assert c1.is_closed
    assert http_client_mod._client is None

    c2 = await http_client_mod.open_http_client()
    assert c2 is not c1
    assert not c2.is_closed


async def test_explicit_timeout_wins_over_setting(monkeypatch):
    monkeypatch.setenv("PROVIDER_TIMEOUT_SECONDS", "2.5")
    get_settings.cache_clear()

    client = await http_client_mod.open_http_client(timeout=0.5)

    assert float(client.timeout.pool) == pytest.approx(0.5)
