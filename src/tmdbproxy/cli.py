"""tmdbproxy CLI - Run the proxy and inspect its behavior."""

import asyncio
import functools
import json
import sys
from collections.abc import Callable, Coroutine
from typing import Any, ParamSpec, TypeVar

import aiohttp
import click
import uvicorn
from rich.console import Console
from rich.table import Table

from tmdbproxy.common.errors import BadRequest, UpstreamUnavailable
from tmdbproxy.common.logging import setup_logging
from tmdbproxy.common.settings import get_settings
from tmdbproxy.proxy.cache import CacheStore
from tmdbproxy.proxy.engine import CacheForwardingEngine
from tmdbproxy.proxy.main import create_app
from tmdbproxy.proxy.routing import normalize_path
from tmdbproxy.proxy.upstream import UpstreamClient

console = Console()

P = ParamSpec("P")
R = TypeVar("R")


def async_command(f: Callable[P, Coroutine[Any, Any, R]]) -> Callable[P, R]:
    """Decorator to run async commands."""

    @functools.wraps(f)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


@click.group()
@click.option(
    "--proxy-url",
    default="http://localhost:8000",
    help="Base URL of a running proxy",
)
@click.pass_context
def cli(ctx: click.Context, proxy_url: str) -> None:
    """tmdbproxy CLI - Caching proxy for the TMDB API."""
    ctx.ensure_object(dict)
    ctx.obj["proxy_url"] = proxy_url.rstrip("/")


@cli.command("serve")
@click.option("--host", default=None, help="Bind host (defaults to settings)")
@click.option("--port", type=int, default=None, help="Bind port (defaults to settings)")
def serve(host: str | None, port: int | None) -> None:
    """Run the proxy server."""
    settings = get_settings()
    setup_logging(settings.log_level, json_output=settings.log_json)
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


@cli.command("check-path")
@click.argument("path")
def check_path(path: str) -> None:
    """Show how an inbound PATH is normalized."""
    try:
        normalized = normalize_path(path)
    except BadRequest as e:
        console.print(f"[red]✗ {e.message}: {path}[/red]")
        sys.exit(1)
    console.print(f"[green]✓[/green] {path} → [cyan]{normalized}[/cyan]")


@cli.command("fetch")
@click.argument("path")
@click.option("--raw", is_flag=True, help="Print the body as plain JSON")
@async_command
async def fetch(path: str, raw: bool) -> None:
    """Fetch PATH from TMDB through the proxy pipeline."""
    settings = get_settings()
    try:
        normalized = normalize_path(path)
    except BadRequest as e:
        console.print(f"[red]✗ {e.message}: {path}[/red]")
        sys.exit(1)

    async with UpstreamClient(settings) as client:
        engine = CacheForwardingEngine(CacheStore(ttl_seconds=settings.cache_ttl_seconds), client)
        try:
            status, body = await engine.handle(normalized)
        except UpstreamUnavailable as e:
            console.print(f"[red]✗ Upstream unavailable: {e.message}[/red]")
            sys.exit(1)

    if raw:
        click.echo(json.dumps(body))
        return
    color = "green" if status == 200 else "yellow"
    console.print(f"[{color}]HTTP {status}[/{color}] {normalized}")
    console.print_json(data=body)


@cli.command("cache-stats")
@click.pass_context
@async_command
async def cache_stats(ctx: click.Context) -> None:
    """Show cache statistics of a running proxy."""
    proxy_url = ctx.obj["proxy_url"]

    async with aiohttp.ClientSession() as session:
        try:
            async with session.get(f"{proxy_url}/health") as response:
                if response.status != 200:
                    detail = await response.text()
                    console.print(f"[red]Error: {detail}[/red]")
                    sys.exit(1)
                payload = await response.json()
        except aiohttp.ClientError as exc:
            console.print(f"[red]Error: {exc}[/red]")
            sys.exit(1)

    table = Table(title="Cache")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    for name, value in payload.get("cache", {}).items():
        table.add_row(name, str(value))
    table.add_row("sweeper_running", str(payload.get("sweeper_running", False)))

    console.print(table)


def main() -> None:
    """CLI entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
