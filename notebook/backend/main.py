"""
Notebook API Application.

    uvicorn notebook.backend.main:app

The app is built lazily on first access to `app` so that importing this
module never reads configuration.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notebook.backend.api import health
from notebook.backend.api.v1 import router as api_v1_router
from notebook.backend.core.config import get_app_config
from notebook.backend.core.exception_handlers import register_exception_handlers
from notebook.backend.core.logging import get_logger, setup_logging
from notebook.backend.core.middleware import RequestContextMiddleware

logger = get_logger(__name__)

# Headers the drawer and the platform gateway send
CORS_HEADERS = ["Content-Type", "X-Request-ID", "X-Frontend-ID", "X-User-ID"]
CORS_METHODS = ["GET", "POST", "PUT", "DELETE"]

_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config = get_app_config()
    setup_logging(level=config.logging.level)
    logger.info(
        "Notebook API starting",
        extra={
            "env": config.application.environment,
            "notebook_enabled": config.features.notebook_enabled,
            "events_publish_enabled": config.features.events_publish_enabled,
        },
    )

    yield

    from notebook.backend.core.database import dispose_engine
    from notebook.backend.events.broker import close_event_broker

    await close_event_broker()
    await dispose_engine()
    logger.info("Notebook API stopped")


def create_app() -> FastAPI:
    settings = get_app_config().application

    app = FastAPI(
        title=settings.name,
        description=settings.description,
        version=settings.version,
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url="/redoc" if settings.docs_enabled else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)
    if settings.cors.origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.origins,
            allow_credentials=True,
            allow_methods=CORS_METHODS,
            allow_headers=CORS_HEADERS,
            expose_headers=["X-Request-ID", "X-Response-Time"],
        )

    register_exception_handlers(app)
    app.include_router(health.router, tags=["health"])
    app.include_router(api_v1_router, prefix=settings.api_prefix)
    return app


def get_app() -> FastAPI:
    global _app
    if _app is None:
        _app = create_app()
    return _app


def __getattr__(name: str) -> FastAPI:
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
