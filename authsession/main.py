from contextlib import asynccontextmanager
from fastapi import FastAPI

from authsession.infrastructure.http.client import (
    close_http_client,
    get_http_client,
    open_http_client,
)
from authsession.infrastructure.identity.gotrue_provider import GoTrueIdentityProvider
from authsession.infrastructure.redis_cache.pool import close_redis, get_redis
from authsession.logging import setup_logging
from authsession.presentation.api import api
from authsession.settings import get_settings

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    await open_http_client()

    get_redis()

    # ONE shared provider adapter, on the shared HTTP client
    provider = GoTrueIdentityProvider(
        settings.identity_provider_url,
        api_key=settings.identity_provider_api_key,
        client=get_http_client(),
    )
    app.state.identity_provider = provider  # expose to dependencies

    try:
        yield
    finally:
        # shutdown
        await provider.aclose()  # it won't close the shared client
        await close_http_client()
        await close_redis()


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="Auth Session API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.include_router(api)
    return app


app = create_app()
