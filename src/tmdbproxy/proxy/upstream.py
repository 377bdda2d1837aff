"""HTTP client for the TMDB API."""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from tmdbproxy.common.errors import UpstreamUnavailable
from tmdbproxy.common.logging import get_logger
from tmdbproxy.common.metrics import record_upstream_request
from tmdbproxy.common.settings import Settings

logger = get_logger(__name__)


@dataclass(frozen=True)
class UpstreamResponse:
    """Status and decoded body of an upstream response."""

    status: int
    body: Any


class Fetcher(Protocol):
    """Anything able to fetch a normalized path from upstream."""

    async def fetch(self, path: str) -> UpstreamResponse: ...


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def decode_body(raw: bytes) -> Any:
    """
    Decode a response body as strict JSON, falling back to the raw text.

    NaN and Infinity are not valid JSON and cannot be re-encoded, so bodies
    containing them are kept as text.
    """
    if not raw:
        return None
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return text


class UpstreamClient:
    """
    Client for TMDB GET requests.

    Every HTTP status is returned to the caller as an UpstreamResponse;
    only transport failures raise UpstreamUnavailable.
    """

    def __init__(self, settings: Settings):
        """
        Initialize the upstream client.

        Args:
            settings: Application settings
        """
        self._base_url = settings.upstream_base_url.rstrip("/")
        self._api_key = settings.tmdb_api_key or ""
        self._timeout_seconds = settings.upstream_timeout
        self._timeout = aiohttp.ClientTimeout(total=settings.upstream_timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "UpstreamClient":
        """Enter async context."""
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        await self.close()

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session exists."""
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    def build_url(self, path: str) -> str:
        """Upstream URL for a normalized path, with the API key attached."""
        return f"{self._base_url}{path}?api_key={self._api_key}"

    def redact(self, url: str) -> str:
        if not self._api_key:
            return url
        return url.replace(self._api_key, "***")

    async def fetch(self, path: str) -> UpstreamResponse:
        """
        GET a normalized path from TMDB.

        Args:
            path: Normalized path, e.g. ``/movie/550``

        Returns:
            Upstream status and decoded body

        Raises:
            UpstreamUnavailable: On timeout or connection failure
        """
        url = self.build_url(path)
        logger.info("Proxying request", url=self.redact(url))

        session = self._ensure_session()
        start = time.perf_counter()
        try:
            async with session.get(url) as response:
                raw = await response.read()
                status = response.status
        except asyncio.TimeoutError as e:
            record_upstream_request("error", time.perf_counter() - start)
            message = f"timeout of {int(self._timeout_seconds * 1000)}ms exceeded"
            logger.error("Upstream request failed", path=path, error=message)
            raise UpstreamUnavailable(message) from e
        except aiohttp.ClientError as e:
            record_upstream_request("error", time.perf_counter() - start)
            message = str(e) or e.__class__.__name__
            logger.error("Upstream request failed", path=path, error=message)
            raise UpstreamUnavailable(message) from e

        record_upstream_request("ok" if status == 200 else "relayed", time.perf_counter() - start)
        if status != 200:
            logger.debug("Relaying upstream status", path=path, status=status)
        return UpstreamResponse(status=status, body=decode_body(raw))
