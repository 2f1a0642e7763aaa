"""
Global error handling middleware for the FastAPI application.

Catches MindwaveError subclasses, Pydantic validation errors, and
unhandled exceptions, converting them into the failure envelope
``{success: false, error, code, technical_error, timestamp}``.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mindwave.core.exceptions import GENERIC_USER_MESSAGE, MindwaveError

logger = logging.getLogger(__name__)


def error_envelope(error: str, code: str, technical_error: str | None, timestamp: str | None = None) -> dict:
    """Build the JSON body shared by every failed request."""
    return {
        "success": False,
        "error": error,
        "code": code,
        "technical_error": technical_error,
        "timestamp": timestamp or datetime.now(UTC).isoformat(),
    }


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application.

    Registers three handlers in priority order:
    1. ``MindwaveError`` maps domain errors to the envelope with their status.
    2. ``RequestValidationError`` covers malformed query/path/body values (422).
    3. ``Exception`` is the catch-all for unexpected server errors (500).

    Args:
        app: The FastAPI application instance to register handlers on.
    """

    @app.exception_handler(MindwaveError)
    async def mindwave_error_handler(request: Request, exc: MindwaveError) -> JSONResponse:
        """Convert domain-specific errors into the failure envelope."""
        if exc.status_code >= 500:
            logger.error("%s %s failed: [%s] %s", request.method, request.url.path, exc.code, exc.detail)
        else:
            logger.warning("%s %s rejected: [%s] %s", request.method, request.url.path, exc.code, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(exc.user_message, exc.code, exc.detail, exc.timestamp),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic request validation errors (malformed body/params)."""
        return JSONResponse(
            status_code=422,
            content=error_envelope("Invalid request.", "VALIDATION_ERROR", str(exc)),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler; stack traces never reach the client."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_envelope(GENERIC_USER_MESSAGE, "INTERNAL_ERROR", "Internal server error"),
        )
