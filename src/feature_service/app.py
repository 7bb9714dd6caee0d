"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.cors import CORSMiddleware

from feature_service.db.engine import (
    create_async_engine,
    create_session_factory,
    create_tables,
)
from feature_service.features.router import router as feature_router
from feature_service.health.router import router as health_router
from feature_service.middleware.errors import (
    CatchAllErrorMiddleware,
    register_error_handlers,
)
from feature_service.middleware.logging import setup_logging
from feature_service.middleware.request_context import RequestContextMiddleware
from feature_service.settings import FeatureServiceSettings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the engine and tables on startup, dispose on shutdown."""
    settings: FeatureServiceSettings = app.state.settings

    engine = create_async_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    await create_tables(engine)

    app.state.engine = engine
    app.state.session_factory = session_factory

    logger.info(
        "Feature service started (database=%s, not_found_policy=%s)",
        _mask_password(settings.database_url),
        settings.not_found_policy,
    )

    yield

    await engine.dispose()
    logger.info("Feature service shut down")


def _mask_password(database_url: str) -> str:
    if "@" not in database_url:
        return database_url
    credentials, host = database_url.rsplit("@", 1)
    return credentials.rsplit(":", 1)[0] + ":***@" + host


def create_app(settings: FeatureServiceSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = FeatureServiceSettings()

    setup_logging(settings.log_level)

    app = FastAPI(
        title="Feature service",
        description="Enumerated sequence feature service.",
        version="1.0",
        license_info={
            "name": "GNU Lesser General Public License (LGPL), version 3 or later",
            "url": "http://www.gnu.org/licenses/lgpl.html",
        },
        lifespan=_lifespan,
    )
    app.state.settings = settings

    # ----- Middleware stack (outer → inner) ----------------------------
    # Order: RequestContext → CatchAll → CORS → GZip
    # Added in reverse because Starlette processes them LIFO.
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    app.add_middleware(CatchAllErrorMiddleware)
    app.add_middleware(RequestContextMiddleware)

    # ----- Exception handlers -----------------------------------------
    register_error_handlers(app)

    # ----- Routers ---------------------------------------------------
    app.include_router(health_router)
    app.include_router(feature_router)

    return app
