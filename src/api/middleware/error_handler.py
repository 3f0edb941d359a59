"""
Global error handling middleware for the FastAPI application.

Catches ChunkScribeError subclasses, Pydantic validation errors, and
unhandled exceptions, converting them into a consistent JSON envelope.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.exceptions import ChunkScribeError
from src.core.models import ErrorResponse

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application.

    Registers three handlers in priority order:
    1. ``ChunkScribeError``: maps domain errors to structured JSON responses.
    2. ``RequestValidationError``: Pydantic validation failures (422).
    3. ``Exception``: catch-all for unexpected server errors (500).

    Args:
        app: The FastAPI application instance to register handlers on.
    """

    @app.exception_handler(ChunkScribeError)
    async def chunkscribe_error_handler(request: Request, exc: ChunkScribeError) -> JSONResponse:
        """Convert domain errors into the envelope, with their context when present."""
        if exc.status_code >= 500:
            logger.warning("%s on %s: %s", exc.code, request.url.path, exc.detail)
        envelope = ErrorResponse(
            detail=exc.detail,
            code=exc.code,
            timestamp=exc.timestamp,
            context=exc.context or None,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=envelope.model_dump(exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic request validation errors (malformed body/params)."""
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                detail=str(exc),
                code="VALIDATION_ERROR",
                timestamp=datetime.now(UTC).isoformat(),
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler; prevents stack traces from leaking to clients."""
        logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                detail="Internal server error",
                code="INTERNAL_ERROR",
                timestamp=datetime.now(UTC).isoformat(),
            ).model_dump(exclude_none=True),
        )
