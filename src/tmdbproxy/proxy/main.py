"""Proxy Service - Caching reverse proxy for the TMDB API."""

import time
from collections.abc import Callable
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
import uvicorn

from tmdbproxy.common.errors import ProxyError, UpstreamUnavailable, proxy_error_response
from tmdbproxy.common.http import CorsMiddleware, RequestIdMiddleware
from tmdbproxy.common.logging import get_logger, setup_logging
from tmdbproxy.common.metrics import MetricsMiddleware, metrics_endpoint
from tmdbproxy.common.settings import Settings, get_settings
from tmdbproxy.proxy.cache import CacheStore
from tmdbproxy.proxy.engine import CacheForwardingEngine
from tmdbproxy.proxy.routing import normalize_path
from tmdbproxy.proxy.sweeper import CacheSweeper
from tmdbproxy.proxy.upstream import Fetcher, UpstreamClient

logger = get_logger(__name__)

def request_target(request: Request) -> str:
    """Undecoded request path plus query string, as sent by the client."""
    raw = request.scope.get("raw_path")
    path = raw.decode("latin-1") if raw else request.url.path
    query = request.scope.get("query_string", b"").decode("latin-1")
    return f"{path}?{query}" if query else path


class ProxyServer:
    """HTTP server for the caching proxy."""

    def __init__(
        self,
        settings: Settings,
        upstream: Fetcher | None = None,
        store: CacheStore | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize server.

        Args:
            settings: Application settings
            upstream: Fetcher override (defaults to an UpstreamClient)
            store: Cache override (defaults to a store sized from settings)
            clock: Time source for a default store
        """
        self._settings = settings
        if store is None:
            store = CacheStore(
                ttl_seconds=settings.cache_ttl_seconds,
                max_entries=settings.cache_max_entries,
                clock=clock,
            )
        self._store = store
        self._upstream = upstream if upstream is not None else UpstreamClient(settings)
        self._engine = CacheForwardingEngine(self._store, self._upstream)
        self._sweeper = CacheSweeper(self._store, interval=settings.cache_sweep_interval)

    @property
    def engine(self) -> CacheForwardingEngine:
        return self._engine

    @property
    def sweeper(self) -> CacheSweeper:
        return self._sweeper

    async def startup(self) -> None:
        """Initialize components."""
        logger.info(
            "Starting TMDB proxy",
            upstream=self._settings.upstream_base_url,
            cache_ttl_seconds=self._settings.cache_ttl_seconds,
            cache_max_entries=self._settings.cache_max_entries,
        )
        if not self._settings.tmdb_api_key:
            logger.warning("TMDB API key is not configured; forwarding requests with an empty api_key")
        self._sweeper.start()

    async def shutdown(self) -> None:
        """Clean up resources."""
        await self._sweeper.stop()
        if isinstance(self._upstream, UpstreamClient):
            await self._upstream.close()
        logger.info("TMDB proxy stopped")

    async def handle_proxy(self, request: Request) -> JSONResponse:
        """Validate, then serve from cache or upstream."""
        raw_path = request_target(request)

        try:
            path = normalize_path(raw_path)
            status, body = await self._engine.handle(path)
            return JSONResponse(body, status_code=status)
        except ProxyError as e:
            if not isinstance(e, UpstreamUnavailable):
                logger.info("Rejected request", path=request.url.path, error=e.message)
            return proxy_error_response(e)
        except Exception as e:
            logger.exception("Proxy error", path=request.url.path)
            return proxy_error_response(UpstreamUnavailable(str(e) or e.__class__.__name__))

    async def handle_health(self, request: Request) -> JSONResponse:
        """Health check."""
        return JSONResponse({
            "status": "healthy",
            "cache": self._store.stats().as_dict(),
            "sweeper_running": self._sweeper.running,
        })


def create_app(
    settings: Settings | None = None,
    upstream: Fetcher | None = None,
    store: CacheStore | None = None,
) -> Starlette:
    """Create the Starlette application."""
    settings = settings or get_settings()
    server = ProxyServer(settings, upstream=upstream, store=store)

    @asynccontextmanager
    async def lifespan(app: Starlette):
        await server.startup()
        yield
        await server.shutdown()

    routes = [
        Route("/health", server.handle_health, methods=["GET"]),
        Route("/metrics", metrics_endpoint, methods=["GET"]),
        # No method filter: anything but a pre-flight is proxied as a GET.
        Route("/{path:path}", server.handle_proxy),
    ]

    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.server = server

    app.add_middleware(
        MetricsMiddleware,
        exclude_paths=["/health", "/metrics"],
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(CorsMiddleware)

    return app


def main():
    """Entry point for the proxy service."""
    settings = get_settings()
    setup_logging(settings.log_level, json_output=settings.log_json)
    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
