"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, error handlers,
routers, and the health endpoint. The module-level ``app`` instance
allows ``uvicorn mindwave.api.app:app --reload``; ``mindwave-api`` serves it
on ``app_host``/``app_port``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI

from mindwave.api.middleware.cors import PermissiveCORSMiddleware
from mindwave.api.middleware.error_handler import register_error_handlers
from mindwave.api.routes import predictions, therapy, voice_analysis
from mindwave.core.config import get_settings
from mindwave.core.models import HealthResponse
from mindwave.services.storage.database import close_db, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await init_db()
    logger.info("Mindwave API ready (llm=%s, stt=%s)", settings.llm_provider, settings.stt_provider)
    yield
    await close_db()


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application."""

    app = FastAPI(
        title="Mindwave",
        description="Voice check-ins transcribed and interpreted into "
        "emotional, stress, and mood indicators.",
        version="0.2.0",
        lifespan=lifespan,
    )

    # -- CORS (every response, preflight included) --
    app.add_middleware(PermissiveCORSMiddleware)

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api/v1) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(voice_analysis.router, prefix="/api/v1")
    app.include_router(predictions.router, prefix="/api/v1")
    app.include_router(therapy.router, prefix="/api/v1")

    return app


app = create_app()


def main() -> None:
    """Serve the API on the configured host and port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("mindwave.api.app:app", host=settings.app_host, port=settings.app_port)
