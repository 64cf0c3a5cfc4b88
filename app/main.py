"""
FounderCircles FastAPI application entry point.

Jobs: founders → matches → circles → rotation / dissolution → trust
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from app import __version__
from app.config import get_settings
from app.db.session import check_db_connection, engine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("FounderCircles starting")
    try:
        try:
            check_db_connection()
            logger.info("Database connection verified")
        except Exception as e:
            logger.critical("Database unreachable: %s", e)
            raise

        if not get_settings().internal_job_token:
            logger.warning("INTERNAL_JOB_TOKEN is not set; every /internal call will be rejected")

        yield
    finally:
        logger.info("FounderCircles shutting down")
        engine.dispose()
        logger.info("Database connection pool closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Internal job endpoints (cron/scripts, token-authenticated)
    from app.api.internal import router as internal_router

    app.include_router(internal_router, tags=["internal"])

    @app.get("/health")
    def health():
        """Liveness plus database reachability; 503 when SELECT 1 fails."""
        body = {"status": "ok", "version": __version__, "database": "connected"}
        try:
            check_db_connection()
        except Exception as e:
            logger.warning("Health check failed: %s", e)
            body.update(status="unhealthy", database="disconnected")
            return JSONResponse(status_code=503, content=body)
        return body

    return app


app = create_app()
