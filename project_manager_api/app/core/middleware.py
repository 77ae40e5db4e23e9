"""
HTTP middlewares: request logging and rate limiting.
"""

import logging
import time
from typing import Optional, Set

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response


logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and elapsed time of every request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.exception("%s %s failed after %.1fms", request.method, request.url.path, elapsed_ms)
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %d (%.1fms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject callers that exceed the limiter's allowance with HTTP 429.

    The limiter is keyed by client IP address and must provide
    ``hit(key) -> RateLimitDecision`` (see
    :mod:`project_manager_api.app.core.rate_limit`).  It is called in a
    worker thread because the Redis variant performs blocking I/O.
    """

    def __init__(self, app, limiter, bypass_paths: Optional[Set[str]] = None):
        super().__init__(app)
        self.limiter = limiter
        self.bypass_paths = bypass_paths or {"/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path.rstrip("/") or "/"
        if path in self.bypass_paths:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        decision = await run_in_threadpool(self.limiter.hit, client_ip)
        if not decision.allowed:
            logger.warning("Rate limit exceeded for %s on %s %s", client_ip, request.method, path)
            return JSONResponse(
                status_code=429,
                content={"detail": f"Rate limit exceeded. Try again in {decision.retry_after} seconds"},
                headers={"Retry-After": str(decision.retry_after)},
            )
        return await call_next(request)
