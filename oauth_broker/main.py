# oauth_broker/main.py
import logging
from typing import Optional

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from oauth_broker.config import Settings, get_settings
from oauth_broker.infrastructure.database import build_engine, build_session_maker, init_db
from oauth_broker.infrastructure.provider_client import ProviderClient
from oauth_broker.middleware.logging import RequestIdMiddleware
from oauth_broker.providers.registry import build_providers
from oauth_broker.providers.state import StateCodec
from oauth_broker.routers.credentials_router import router as credentials_router
from oauth_broker.routers.oauth_router import router as oauth_router


def configure_structlog(level: str = "INFO"):
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        context_class=dict,
    )


logger = structlog.get_logger()


def create_app(settings: Optional[Settings] = None, http_transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Build the service. `http_transport` replaces the network for outbound provider
    calls (tests pass an httpx.MockTransport).
    """
    settings = settings or get_settings()
    configure_structlog(settings.LOG_LEVEL)

    engine = build_engine(settings.DATABASE_URL)
    state_codec = StateCodec(signing_key=settings.STATE_SIGNING_KEY or None, ttl_seconds=settings.STATE_TTL_SECONDS)
    client = ProviderClient(timeout=settings.HTTP_TIMEOUT_SECONDS, transport=http_transport)

    app = FastAPI(title="OAuth Broker")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_maker = build_session_maker(engine)
    app.state.state_codec = state_codec
    app.state.providers = build_providers(settings, client, state_codec)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(oauth_router)
    app.include_router(credentials_router)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "OAuth broker running. Start a flow at /auth/{provider}/start?user_id=..."

    @app.on_event("startup")
    async def on_startup():
        await init_db(engine)
        logger.info(
            "app_startup",
            providers=sorted(app.state.providers),
            signed_state=state_codec.signed,
        )

    @app.on_event("shutdown")
    async def on_shutdown():
        await engine.dispose()

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("oauth_broker.main:app", host="0.0.0.0", port=get_settings().PORT)
