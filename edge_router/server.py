import logging

import aiohttp
from aiohttp import web

from .client import ForwardedAsset, forward
from .config import Settings
from .edges import SELECTED_EDGE_HEADER
from .errors import EdgeRouterError, InvalidInput, NoEdgeReachable
from .router import select_edge

logger = logging.getLogger(__name__)

SETTINGS_KEY = web.AppKey("settings", Settings)

async def route_asset(settings: Settings, resource_path: str | None) -> ForwardedAsset:
    """Serve one asset request from whichever edge answers its ping fastest.

    Every call probes all edges afresh. If the winner fails during the fetch
    the error is reported as is; other edges are not tried.
    """
    if not resource_path or not resource_path.startswith("/"):
        raise InvalidInput()

    async with aiohttp.ClientSession() as session:
        chosen = await select_edge(session, settings.edges, settings.probe_timeout)
        if chosen is None:
            logger.warning("No edge answered a probe for %s", resource_path)
            raise NoEdgeReachable()

        return await forward(session, chosen, resource_path, settings.fetch_timeout)

async def handle_asset(request: web.Request) -> web.Response:
    settings = request.app[SETTINGS_KEY]
    try:
        asset = await route_asset(settings, request.query.get("path"))
    except EdgeRouterError as e:
        return web.json_response(e.to_payload(), status=e.status)
    except Exception:
        logger.exception("Unexpected error while routing %s", request.path_qs)
        return web.json_response({"error": "internal error"}, status=500)

    return web.Response(
        status=asset.status,
        body=asset.body,
        headers={
            "Content-Type": asset.content_type,
            SELECTED_EDGE_HEADER: asset.edge.base_url,
        },
    )

async def handle_healthz(request: web.Request) -> web.Response:
    return web.Response(text="ok")

@web.middleware
async def cors_middleware(request: web.Request, handler):
    try:
        response = await handler(request)
    except web.HTTPException as e:
        e.headers["Access-Control-Allow-Origin"] = "*"
        raise
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response

def create_app(settings: Settings) -> web.Application:
    middlewares = [cors_middleware] if settings.enable_cors else []
    app = web.Application(middlewares=middlewares)
    app[SETTINGS_KEY] = settings
    app.router.add_get("/healthz", handle_healthz)
    app.router.add_get("/asset", handle_asset)
    return app
