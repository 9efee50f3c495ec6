import asyncio
import logging
from pathlib import Path

import aiohttp
import typer
from aiohttp import web

from .config import DEFAULT_PORT, Settings
from .edge import EdgeNodeConfig, create_edge_app
from .edges import Edge, parse_edges
from .errors import ConfigError
from .router import pick_fastest, probe_edges
from .server import create_app

app = typer.Typer(help="Latency-aware edge router")

logger = logging.getLogger(__name__)

def _setup_logging(level: str):
    # getLevelName maps known names to ints and anything else to "Level X"
    if not isinstance(logging.getLevelName(level.upper()), int):
        typer.echo(f"Unknown log level: {level}", err=True)
        raise typer.Exit(code=1)
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

def _load_edges(raw: str) -> list[Edge]:
    edges = parse_edges(raw)
    if not edges:
        typer.echo("EDGES env var required (comma-separated list of edge base URLs)", err=True)
        raise typer.Exit(code=1)
    return edges

def serve(
    edges: str = typer.Option("", envvar="EDGES", help="Comma-separated edge base URLs"),
    port: int = typer.Option(DEFAULT_PORT, envvar="ROUTER_PORT", help="Listen port"),
    enable_cors: bool = typer.Option(False, envvar="ENABLE_CORS", help="Send Access-Control-Allow-Origin: *"),
    probe_timeout_ms: int = typer.Option(2000, envvar="PROBE_TIMEOUT_MS"),
    fetch_timeout_ms: int = typer.Option(4000, envvar="FETCH_TIMEOUT_MS"),
    log_level: str = typer.Option("INFO", envvar="ROUTER_LOG_LEVEL"),
):
    """Run the router."""
    _setup_logging(log_level)
    try:
        settings = Settings.create(
            _load_edges(edges),
            port=port,
            enable_cors=enable_cors,
            probe_timeout=probe_timeout_ms / 1000.0,
            fetch_timeout=fetch_timeout_ms / 1000.0,
        )
    except ConfigError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)

    logger.info("Client router listening on :%d", settings.port)
    logger.info("Edges: %s", ", ".join(str(edge) for edge in settings.edges))
    logger.info('Try: curl "http://localhost:%d/asset?path=/hello.txt" -i', settings.port)
    web.run_app(create_app(settings), port=settings.port, print=None)

def list_edges(
    edges: str = typer.Option("", envvar="EDGES", help="Comma-separated edge base URLs"),
    probe_timeout_ms: int = typer.Option(2000, envvar="PROBE_TIMEOUT_MS"),
):
    """Probe every edge once and show them ranked by latency."""
    edge_list = _load_edges(edges)

    async def run():
        async with aiohttp.ClientSession() as session:
            return await probe_edges(session, edge_list, probe_timeout_ms / 1000.0)

    results = asyncio.run(run())
    fastest = pick_fastest(results)

    # Reachable edges first, fastest on top
    results.sort(key=lambda x: (x[1] is None, x[1].rtt_ms if x[1] else 0.0))

    for edge, result in results:
        mark = "★" if edge == fastest else " "
        rtt = "n/a" if result is None else f"{result.rtt_ms:.1f} ms"
        typer.echo(f"{mark} {rtt:>10}  {edge}")

def edge(
    node_id: str = typer.Option("edge", envvar="NODE_ID"),
    port: int = typer.Option(8080, envvar="EDGE_PORT"),
    base_latency_ms: int = typer.Option(25, envvar="BASE_LATENCY_MS"),
    jitter_ms: int = typer.Option(5, envvar="JITTER_MS"),
    cache_ttl_seconds: int = typer.Option(60, envvar="CACHE_TTL_SECONDS"),
    assets_dir: Path = typer.Option(Path("./assets"), envvar="ASSETS_DIR"),
    redis_url: str = typer.Option("", envvar="REDIS_URL", help="Share cache invalidations through this Redis, e.g. redis://localhost:6379"),
    log_level: str = typer.Option("INFO", envvar="ROUTER_LOG_LEVEL"),
):
    """Run a simulated edge node with artificial latency."""
    _setup_logging(log_level)
    config = EdgeNodeConfig(
        node_id=node_id,
        base_latency_ms=base_latency_ms,
        jitter_ms=jitter_ms,
        cache_ttl=float(cache_ttl_seconds),
        assets_dir=assets_dir,
        redis_url=redis_url or None,
    )
    logger.info(
        "[%s] Starting edge on :%d (latency=%dms, cacheTTL=%ds)",
        node_id, port, base_latency_ms, cache_ttl_seconds,
    )
    web.run_app(create_edge_app(config), port=port, print=None)

app.command()(serve)
app.command()(list_edges)
app.command()(edge)

if __name__ == "__main__":
    app()
