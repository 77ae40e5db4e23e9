"""Entry point for the Project Manager API.

Serves ``project_manager_api.app.main:app`` with Uvicorn on
``HOST``/``PORT`` (defaults ``0.0.0.0`` and ``8000``).  Other settings
such as ``DATABASE_URL``, ``SECRET_KEY`` or ``RATE_LIMIT_BACKEND`` are
read from the environment by ``core.config``.

Usage:
    python run.py
"""
import asyncio

from uvicorn import Config, Server

from project_manager_api.app.core.config import settings


async def main() -> None:
    """Start the API server."""
    config = Config(
        app="project_manager_api.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
