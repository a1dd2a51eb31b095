"""FastAPI application entrypoint and configuration.

This module provides the main FastAPI application factory that configures
logging, sets up CORS middleware, creates the app-wide TTL cache, includes
the map filter and analytics routers, and exposes a health check endpoint
for monitoring.

Example:
    The application can be run with uvicorn (the ``serve`` extra):
        $ uvicorn seabed.main:app --reload

    Or imported and used programmatically:
        >>> from seabed.main import app
        >>> # Use app in ASGI server
"""

import fastapi
from fastapi.middleware import cors

from seabed.api import analytics, map_filter
from seabed.core import config, log
from seabed.services import cache


def create_app() -> fastapi.FastAPI:
    """Create and configure the FastAPI application.

    The repository is not opened here; the first request that needs it
    creates it from settings and stores it on ``app.state``. The TTL cache
    and its tier policies live on ``app.state`` as well so every request
    shares them.

    Returns:
        Configured FastAPI application instance ready for ASGI server.

    Example:
        The app can be used with uvicorn or other ASGI servers:
            >>> app = create_app()
            >>> # Or use the module-level app instance:
            >>> from seabed.main import app
    """
    settings = config.get_settings()
    log.configure_logging(settings.log_level)

    app = fastapi.FastAPI(title="Seabed Explorer", version="0.1.0")
    app.state.repository = None
    app.state.cache = cache.TTLCache()
    app.state.cache_tiers = cache.CacheTiers.from_settings(settings)

    app.include_router(map_filter.router)
    app.include_router(analytics.router)

    app.add_middleware(
        cors.CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:  # type: ignore[misc]
        """Health check endpoint for monitoring and load balancers.

        Returns:
            Dictionary with status "ok" if the service is running.
        """
        return {"status": "ok"}

    return app


app = create_app()
