"""Correlation ID middleware for request tracing."""

import uuid
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

CORRELATION_HEADER = "X-Correlation-ID"
# Accepted from upstream proxies when no correlation header is sent
REQUEST_ID_HEADER = "X-Request-ID"
MAX_CORRELATION_ID_LENGTH = 64

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """
    Get the current correlation ID from context.

    Returns empty string if called outside of a request context.
    """
    return correlation_id_var.get()


def generate_correlation_id() -> str:
    """Generate a short unique correlation ID."""
    return uuid.uuid4().hex[:16]


def _clean_incoming_id(value: str | None) -> str | None:
    if not value:
        return None
    value = value.strip()
    if not value or len(value) > MAX_CORRELATION_ID_LENGTH or not value.isprintable():
        return None
    return value


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Attach a correlation ID to every request.

    Taken from X-Correlation-ID (or X-Request-ID) when the client sends a
    sane value, generated otherwise, and echoed back on the response so
    feedback submissions can be traced through the logs.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = (
            _clean_incoming_id(request.headers.get(CORRELATION_HEADER))
            or _clean_incoming_id(request.headers.get(REQUEST_ID_HEADER))
            or generate_correlation_id()
        )

        token = correlation_id_var.set(correlation_id)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            correlation_id_var.reset(token)
