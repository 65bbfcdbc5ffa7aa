"""
Request middleware

Provides:
- Request ID tracking
- CORS origin configuration
"""

import secrets
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from contact_reconciliation.config import get_settings

logger = structlog.get_logger()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Add unique request ID to all requests for tracing.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or secrets.token_hex(8)

        # Add to request state for logging
        request.state.request_id = request_id

        # Bind to structlog context
        structlog.contextvars.bind_contextvars(request_id=request_id)

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Request-ID"] = request_id
        return response


def get_cors_origins() -> list[str]:
    """Allowed CORS origins; wildcard outside production when none are configured."""
    settings = get_settings()
    origins = [origin for origin in settings.cors_origins if origin]
    if not origins and settings.environment != "production":
        return ["*"]
    return origins
