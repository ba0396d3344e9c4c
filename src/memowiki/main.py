"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

# Logging constants defined here (not in constants/) because logging.basicConfig()
# must run before any module imports that might create loggers.
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    level=logging.INFO,
)

# Unify uvicorn loggers with app format
for uvicorn_logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
    uvicorn_logger = logging.getLogger(uvicorn_logger_name)
    uvicorn_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    uvicorn_logger.addHandler(handler)

from memowiki.api.routers import files, summaries  # noqa: E402
from memowiki.config import Config, load_settings  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan handler for startup and shutdown events.

    On startup, loads settings from the environment unless the app was
    created with explicit settings. A ConfigError here aborts startup.
    """
    if getattr(app.state, "settings", None) is None:
        app.state.settings = load_settings()

    settings: Config = app.state.settings
    logger.info(f"Serving wiki at {settings.wiki_path} (backend {settings.backend_identity})")

    yield


def create_app(settings: Config | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Configuration to serve. Loaded at startup if omitted.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="MemoWiki",
        description="Incremental documentation cache and summary index for codebases",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    app.include_router(summaries.router)
    app.include_router(files.router)
    return app


app = create_app()
