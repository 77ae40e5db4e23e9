"""
Main entrypoint for the Project Manager API.

This module assembles the FastAPI application: logging, CORS, request
logging and rate limiting middlewares, the domain error handlers and
the versioned routers.  The ``create_app`` function builds and
configures the app, which is then instantiated at module import time
as ``app``, e.g.::

    uvicorn project_manager_api.app.main:app --reload

The application title and version are provided via ``Settings`` from
``core.config``.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.errors import register_exception_handlers
from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.errors import CacheUnavailableError
from .core.logging_config import setup_logging
from .core.middleware import RateLimitMiddleware, RequestLoggingMiddleware
from .core.rate_limit import RedisRateLimiter, build_rate_limiter


def create_app(rate_limiter: Optional[object] = None, create_schema: bool = True) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    rate_limiter : optional
        Limiter to install.  When omitted one is built from the
        settings, or none at all if rate limiting is disabled.
    create_schema : bool
        Create missing tables on startup.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    setup_logging(settings.log_level, settings.log_file or None)
    logger = logging.getLogger(__name__)

    limiter = rate_limiter if rate_limiter is not None else build_rate_limiter(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if create_schema:
            init_db()
        if isinstance(limiter, RedisRateLimiter):
            try:
                limiter.ping()
            except CacheUnavailableError as exc:
                # Requests are still served; the limiter admits them while Redis is down.
                logger.warning("%s", exc.message)
        logger.info("%s %s started", settings.project_name, settings.api_version)
        yield

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug, lifespan=lifespan)

    # Middlewares run in reverse order of registration: CORS first,
    # then request logging, then rate limiting.
    if limiter is not None:
        app.add_middleware(RateLimitMiddleware, limiter=limiter)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(v1_router, prefix="/api/v1")
    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
