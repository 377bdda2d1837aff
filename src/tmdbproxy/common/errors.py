"""Shared error types and response helpers."""

from __future__ import annotations

from typing import Any

from starlette.responses import JSONResponse


class ErrorMessage:
    INVALID_PATH = "Invalid TMDB API path"
    PROXY_ERROR = "TMDB Proxy Error"


class ProxyError(Exception):
    """Base error for the proxy pipeline."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(ProxyError):
    """Inbound path is not one of the allowed TMDB categories."""

    status_code = 400

    def __init__(self, message: str = ErrorMessage.INVALID_PATH):
        super().__init__(message)


class UpstreamUnavailable(ProxyError):
    """Transport-level failure talking to TMDB (timeout, DNS, connection)."""

    status_code = 500


def error_response(
    message: str,
    status_code: int,
    details: Any | None = None,
) -> JSONResponse:
    payload: dict[str, Any] = {"error": message}
    if details is not None:
        payload["details"] = details
    return JSONResponse(payload, status_code=status_code)


def proxy_error_response(exc: ProxyError) -> JSONResponse:
    """Convert a pipeline error into its JSON response."""
    if isinstance(exc, BadRequest):
        return error_response(exc.message, exc.status_code)
    return error_response(ErrorMessage.PROXY_ERROR, exc.status_code, details=exc.message)
