"""HTTP middleware and request context utilities."""

from __future__ import annotations

import uuid

import structlog

from starlette.requests import Request
from starlette.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def is_preflight(method: str) -> bool:
    """Return True for a CORS pre-flight request."""
    return method.upper() == "OPTIONS"


def set_request_id(value: str) -> None:
    """Bind the request id into the structlog context."""
    structlog.contextvars.bind_contextvars(request_id=value)


class CorsMiddleware(BaseHTTPMiddleware):
    """
    Attach the fixed CORS headers to every response.

    Pre-flight requests are answered here with an empty 200 and never reach
    routing, so they succeed for any path.
    """

    def __init__(self, app: ASGIApp, headers: dict[str, str] | None = None) -> None:
        super().__init__(app)
        self._headers = dict(headers or CORS_HEADERS)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if is_preflight(request.method):
            return Response(status_code=200, headers=self._headers)

        response = await call_next(request)
        for name, value in self._headers.items():
            response.headers[name] = value
        return response


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a request id to each request/response and log context."""

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID") -> None:
        super().__init__(app)
        self._header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self._header_name) or uuid.uuid4().hex
        request.state.request_id = request_id
        set_request_id(request_id)

        try:
            response = await call_next(request)
            response.headers.setdefault(self._header_name, request_id)
            return response
        finally:
            structlog.contextvars.clear_contextvars()
