"""ASGI entry point: ``uvicorn clubhub.main:app``."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clubhub import __version__
from clubhub.api.router import api_router
from clubhub.config import settings
from clubhub.core.database import async_engine
from clubhub.core.errors import register_exception_handlers
from clubhub.core.logging import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
)
from clubhub.modules.tenants.directory import directory_engine


configure_logging(settings)

logger = structlog.get_logger()

DEV_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
        version=__version__,
    )
    try:
        yield
    finally:
        # Both the registry and the tenant directory hold pooled connections
        for engine in (async_engine, directory_engine):
            await engine.dispose()
        logger.info("application_shutdown")


def create_app() -> FastAPI:
    """Build the API: signup, tenants, users, auth, billing webhooks and health."""
    docs_enabled = not settings.is_production
    app = FastAPI(
        title=settings.app_name,
        description="Club management platform: signup, tenant provisioning and billing activation",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )

    origins = settings.cors_origins or (DEV_CORS_ORIGINS if settings.is_development else [])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER, "Stripe-Signature"],
    )
    # Added last runs first: the request id is bound before the access log line
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
