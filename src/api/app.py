"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, error handlers,
routers, and the health endpoint. The module-level ``app`` instance
allows ``uvicorn src.api.app:app --reload``; ``main()`` serves it on the
configured ``app_host`` / ``app_port``.
"""

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware.error_handler import register_error_handlers
from src.api.routes import files, recording
from src.core.config import get_settings
from src.core.models import HealthResponse
from src.services import orchestrator


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Release the microphone and HTTP client on shutdown."""
    yield
    await orchestrator.cleanup()


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application."""
    logging.basicConfig(level=get_settings().log_level.upper())

    app = FastAPI(
        title="chunkscribe",
        description="Chunked audio recording with server-side reassembly "
        "and transcription.",
        version="0.1.0",
        lifespan=lifespan,
    )

    # -- CORS --
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",  # Dev frontend
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api/v1) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(recording.router, prefix="/api/v1")
    app.include_router(files.router, prefix="/api/v1")

    return app


app = create_app()


def main() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
