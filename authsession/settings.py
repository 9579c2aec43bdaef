from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"

    # Infra
    redis_url: str = "redis://redis:6379/0"
    identity_provider_url: str = "http://auth:9999"
    identity_provider_api_key: str = ""

    # Timeouts
    cache_timeout_ms: int = 250
    provider_timeout_seconds: float = 10.0

    # Security / policies
    refresh_token_ttl_days: int = 7
    mfa_pending_ttl_seconds: int = 300
    default_role: str = "cliente"

    # Cookies
    access_cookie_name: str = "sb_access_token"
    refresh_cookie_name: str = "sb_refresh_token"
    refresh_cookie_path: str = "/v1/auth"
    csrf_cookie_name: str = "csrf_token"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() in ("prod", "production")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
