from authsession.settings import Settings, get_settings


def test_get_settings_is_cached():
    get_settings.cache_clear()
    s1 = get_settings()
    s2 = get_settings()
    assert s1 is s2


def test_session_policy_defaults(monkeypatch):
    for name in ("REFRESH_TOKEN_TTL_DAYS", "MFA_PENDING_TTL_SECONDS", "APP_ENV"):
        monkeypatch.delenv(name, raising=False)
    s = Settings(_env_file=None)
    assert s.refresh_token_ttl_days == 7
    assert s.mfa_pending_ttl_seconds == 300
    assert s.cache_timeout_ms == 250
    assert s.refresh_cookie_path == "/v1/auth"
    assert s.is_production is False


def test_env_overrides_and_cache_clear(monkeypatch):
    monkeypatch.setenv("REFRESH_TOKEN_TTL_DAYS", "30")
    monkeypatch.setenv("APP_ENV", "Production")
    get_settings.cache_clear()
    s = get_settings()
    assert s.refresh_token_ttl_days == 30
    assert s.is_production is True

    monkeypatch.delenv("REFRESH_TOKEN_TTL_DAYS", raising=False)
    monkeypatch.delenv("APP_ENV", raising=False)
    get_settings.cache_clear()
    s2 = get_settings()
    assert s2.refresh_token_ttl_days != 30
