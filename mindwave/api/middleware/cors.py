"""
Permissive CORS middleware for browser and mobile clients.

Every response carries the CORS headers, including error responses, and
any ``OPTIONS`` preflight is answered with an empty 200 before routing.
Unhandled exceptions are turned into the 500 envelope here rather than in
Starlette's outermost error middleware, which would bypass these headers.
"""

import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from mindwave.api.middleware.error_handler import error_envelope
from mindwave.core.config import get_settings
from mindwave.core.exceptions import GENERIC_USER_MESSAGE

logger = logging.getLogger(__name__)

ALLOWED_HEADERS = "authorization, x-client-info, apikey, content-type"
ALLOWED_METHODS = "GET, POST, OPTIONS"


def cors_headers(origin: str | None) -> dict[str, str]:
    """Return the CORS headers for a request from ``origin``."""
    allowed = get_settings().cors_origins
    if "*" in allowed:
        allow_origin = "*"
    elif origin and origin in allowed:
        allow_origin = origin
    else:
        allow_origin = allowed[0] if allowed else "*"
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
    }


class PermissiveCORSMiddleware(BaseHTTPMiddleware):
    """Answer preflights and stamp CORS headers on every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        headers = cors_headers(request.headers.get("origin"))

        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            response = JSONResponse(
                status_code=500,
                content=error_envelope(GENERIC_USER_MESSAGE, "INTERNAL_ERROR", "Internal server error"),
            )
        response.headers.update(headers)
        return response
