"""
billhook FastAPI Application

Builds the app that receives Stripe deliveries. The webhook dispatcher and,
for the redis backend, the shared Redis connection live for the lifetime of
the app.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse

from billhook import __version__
from billhook.config import Settings, settings

from .routes import health, webhooks

logger = structlog.get_logger()


# ══════════════════════════════════════════════════════════════
# Lifespan Management
# ══════════════════════════════════════════════════════════════


async def _startup(app: FastAPI, app_settings: Settings) -> None:
    if app_settings.clients_backend == "redis":
        from billhook.db.redis import init_redis

        await init_redis(str(app_settings.redis_url))

    from billhook.webhooks import build_dispatcher

    app.state.dispatcher = await build_dispatcher(app_settings)


async def _shutdown(app: FastAPI, app_settings: Settings) -> None:
    dispatcher = getattr(app.state, "dispatcher", None)
    if dispatcher is not None:
        await dispatcher.close()

    if app_settings.clients_backend == "redis":
        from billhook.db.redis import close_redis

        await close_redis()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_settings: Settings = app.state.settings
    logger.info(
        "Starting billhook API",
        version=__version__,
        environment=app_settings.app_env,
        clients_backend=app_settings.clients_backend,
    )

    await _startup(app, app_settings)
    try:
        yield
    finally:
        logger.info("Shutting down billhook API")
        await _shutdown(app, app_settings)


# ══════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════


async def log_requests(request: Request, call_next):
    """Log every request with its status and duration."""
    start = time.perf_counter()
    response = await call_next(request)

    logger.info(
        "Request",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    return response


def configure_logging(level: str) -> None:
    """Filter structlog output below the configured level."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
    )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI application."""
    app_settings = app_settings or settings
    show_docs = app_settings.debug
    configure_logging(app_settings.log_level)

    app = FastAPI(
        title="billhook API",
        description="Stripe billing webhooks for client records and tracking",
        version=__version__,
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
        openapi_url="/openapi.json" if show_docs else None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    app.middleware("http")(log_requests)

    app.include_router(health.router, tags=["Health"])
    app.include_router(
        webhooks.router,
        prefix=f"/api/{app_settings.api_version}/webhooks",
        tags=["Webhooks"],
    )

    return app


app = create_app()
