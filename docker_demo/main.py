"""Main FastAPI application for the FastAPI Docker demo.

Run directly (``python -m docker_demo.main``) so the service can be started
under ``python -m coverage run -m docker_demo.main`` inside the container.
"""

# Standard library imports
from contextlib import asynccontextmanager

# Third-party imports
import structlog
import uvicorn
from fastapi import FastAPI

# Local application imports
from . import __version__
from .api import health, ping
from .config import settings
from .middleware.logging import RequestLoggingMiddleware
from .utils.error_handlers import register_error_handlers
from .utils.logging import setup_logging

# Setup logging
setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(
        "Starting FastAPI Docker demo",
        version=__version__,
        host=settings.api_host,
        port=settings.api_port,
    )
    if settings.api_debug:
        logger.warning("Debug mode is enabled - disable in production")

    yield

    # Reached on SIGTERM as well; coverage.py saves its data after this returns
    logger.info("FastAPI Docker demo shutdown completed")


app = FastAPI(
    title="FastAPI Docker Demo",
    description="A static-response service for container image and coverage demos",
    version=__version__,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
    debug=settings.api_debug,
    lifespan=lifespan,
)

if settings.enable_access_logs:
    app.add_middleware(RequestLoggingMiddleware)

# Register global error handlers
register_error_handlers(app)

app.include_router(ping.router, tags=["ping"])
app.include_router(health.router, tags=["health"])


def run_server():
    logger.info(f"Starting HTTP server on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        access_log=False,
        timeout_graceful_shutdown=5,
    )


if __name__ == "__main__":
    run_server()
