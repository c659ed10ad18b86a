"""FastAPI application factory and server entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import LOG_FORMAT, validate_config
from ..utils.logging import configure_logging
from .config import ApiSettings
from .deps.providers import close_search_client, get_settings
from .errors import register_error_handlers

logger = logging.getLogger(__name__)


def _log_config_issues() -> None:
    issues = validate_config()
    for issue in issues:
        level = issue.get("level", "WARNING")
        msg = issue.get("message", "")
        if level == "ERROR":
            logger.error("Config validation: %s", msg)
        else:
            logger.warning("Config validation: %s", msg)
    if not issues:
        logger.info("Config validation: all checks passed")


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    settings: ApiSettings = get_settings()
    configure_logging(settings.log_level, LOG_FORMAT)
    logger.info("Starting insight_engine API on %s:%s", settings.host, settings.port)
    _log_config_issues()

    yield

    await close_search_client()
    logger.info("Shutting down insight_engine API")


def create_app(settings: ApiSettings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Insight Engine API",
        description="Job state and result aggregation for anomaly detectors and forecasters.",
        version="1.0.0",
        lifespan=_lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS
    origins = [o.strip() for o in settings.cors_origins.split(",")]
    allow_creds = "*" not in origins
    if not allow_creds:
        logger.warning(
            "CORS_ORIGINS contains '*'. Credentials will NOT be allowed. "
            "Set explicit origins for credentialed cross-origin requests."
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_creds,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    from .routers import all_routers

    for router in all_routers():
        app.include_router(router)

    return app


def run_server() -> None:
    """CLI entry point: ``python -m insight_engine.api.main``."""
    import uvicorn

    settings = get_settings()
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run_server()
