"""RateMyRide API -- Main Application Entry Point

Creates the FastAPI application, configures logging, CORS middleware and
error rendering, and registers all API route modules under the /api/v1
prefix.

Run with::

    uvicorn ratemyride.main:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ratemyride.api.errors import install_error_handlers
from ratemyride.api.routes import countries, tips, vehicles, webhooks
from ratemyride.core.config import settings
from ratemyride.services.countryCache import CountryCache

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan: startup / shutdown hooks
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Shutdown:
      - Dispose of the database engine's connection pool.
    """
    logger.info("%s %s starting", settings.app_name, settings.app_version)

    yield

    from ratemyride.api.deps import engine

    await engine.dispose()


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # The country list is cached per application instance.
    app.state.country_cache = CountryCache()

    # -----------------------------------------------------------------------
    # CORS middleware: the mobile client calls from arbitrary origins.
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    # -----------------------------------------------------------------------
    # Health check
    # -----------------------------------------------------------------------
    @app.get("/health", tags=["Health"])
    async def health():
        """Lightweight health check for load balancers and readiness probes."""
        return {"status": "ok", "version": settings.app_version}

    # -----------------------------------------------------------------------
    # Register API route modules
    # -----------------------------------------------------------------------
    # Each router defines its own prefix (e.g. /tips, /stripe) and tags; they
    # are mounted under the shared /api/v1 prefix.
    # -----------------------------------------------------------------------
    _prefix = settings.api_v1_prefix

    app.include_router(tips.router, prefix=_prefix)
    app.include_router(vehicles.router, prefix=_prefix)
    app.include_router(webhooks.router, prefix=_prefix)
    app.include_router(countries.router, prefix=_prefix)

    return app


app = create_app()
