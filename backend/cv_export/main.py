"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cv_export.api.campaign import router as campaign_router
from cv_export.api.candidates import router as candidates_router
from cv_export.config import AppConfig, get_config
from cv_export.database import dispose_db, init_db
from cv_export.errors import ExportError
from cv_export.logging_config import setup_logging
from cv_export.storage import SupabaseStorage

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup and shutdown lifecycle."""
    config: AppConfig = app.state.config
    setup_logging(level=config.log_level, log_file=config.log_file, environment=config.app_env)
    init_db(config)
    logger.info(
        "server_starting",
        host=config.host,
        port=config.port,
        development=config.is_development,
        export_secret_configured=config.export_secret is not None,
        storage_configured=config.storage_configured,
    )
    yield
    dispose_db()
    logger.info("server_shutting_down")


async def _export_error_handler(request: Request, exc: ExportError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Application factory — create and configure the FastAPI app."""
    config = config or get_config()

    app = FastAPI(
        title="Recruitment CV Export",
        description="CSV exports of campaign applications and candidates with signed CV links",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.storage = SupabaseStorage.from_config(config)

    app.add_exception_handler(ExportError, _export_error_handler)

    app.include_router(campaign_router)
    app.include_router(candidates_router)

    @app.get("/api/health", tags=["health"])
    def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(
        "cv_export.main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
    )
