"""Simulated edge node: the backend the router probes and fetches from.

Adds a configurable artificial delay to every ping and asset response so that
several nodes on one machine show distinct latencies.
"""
import asyncio
import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path

import redis.asyncio as redis
from aiohttp import web

logger = logging.getLogger(__name__)

MIME_TYPES = {
    ".txt": "text/plain; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "text/javascript; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".svg": "image/svg+xml",
    ".html": "text/html; charset=utf-8",
    ".htm": "text/html; charset=utf-8",
}

@dataclass(frozen=True)
class EdgeNodeConfig:
    node_id: str = "edge"
    base_latency_ms: int = 25
    jitter_ms: int = 5
    cache_ttl: float = 60.0   # seconds
    assets_dir: Path = Path("./assets")
    redis_url: str | None = None   # shared invalidation stream; None keeps invalidation local
    stream_name: str = "invalidate"

@dataclass
class CacheEntry:
    data: bytes
    mime: str
    expires_at: float

def mime_for(path: Path) -> str:
    return MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")

class EdgeNode:
    def __init__(self, config: EdgeNodeConfig, redis_client=None):
        self.config = config
        self.redis = redis_client
        self.owns_redis = False
        self.consumer: asyncio.Task | None = None
        self.cache: dict[str, CacheEntry] = {}
        self.assets_dir = Path(config.assets_dir).resolve()

    async def _simulate_latency(self):
        jitter = random.randint(0, self.config.jitter_ms) if self.config.jitter_ms > 0 else 0
        await asyncio.sleep((self.config.base_latency_ms + jitter) / 1000.0)

    def _resolve_asset(self, path: str) -> Path | None:
        full = (self.assets_dir / path.lstrip("/")).resolve()
        if not full.is_relative_to(self.assets_dir) or not full.is_file():
            return None
        return full

    async def handle_ping(self, request: web.Request) -> web.Response:
        await self._simulate_latency()
        return web.json_response({"nodeId": self.config.node_id, "latencyMs": self.config.base_latency_ms})

    async def handle_get_asset(self, request: web.Request) -> web.Response:
        path = "/" + request.match_info.get("path", "")
        if path == "/":
            return web.Response(status=400, text="path required")

        await self._simulate_latency()

        now = time.monotonic()
        entry = self.cache.get(path)
        if entry is not None and now < entry.expires_at:
            return self._asset_response(entry, "HIT")

        full = self._resolve_asset(path)
        if full is None:
            raise web.HTTPNotFound()

        data = await asyncio.to_thread(full.read_bytes)
        entry = CacheEntry(data=data, mime=mime_for(full), expires_at=now + self.config.cache_ttl)
        self.cache[path] = entry
        return self._asset_response(entry, "MISS")

    def _asset_response(self, entry: CacheEntry, cache_state: str) -> web.Response:
        return web.Response(
            body=entry.data,
            headers={
                "Content-Type": entry.mime,
                "X-Cache": cache_state,
                "X-Node": self.config.node_id,
            },
        )

    async def handle_invalidate(self, request: web.Request) -> web.Response:
        try:
            body = await request.json()
        except ValueError:
            body = None
        path = body.get("path") if isinstance(body, dict) else None
        if not isinstance(path, str) or not path:
            return web.json_response({"error": "body {path} required"}, status=400)

        if self.redis is None:
            self._evict(path)
            return web.json_response({"published": False, "id": None, "path": path})

        # Every node, this one included, evicts when its consumer reads the entry
        message_id = await self.redis.xadd(
            self.config.stream_name,
            {"path": path, "ts": int(time.time() * 1000)},
        )
        return web.json_response({"published": True, "id": message_id, "path": path})

    def _evict(self, path: str):
        self.cache.pop(path, None)
        logger.info("[%s] Invalidated cache for path: %s", self.config.node_id, path)

    async def consume_invalidations(self):
        """Follow the shared stream and drop every announced path from the local cache."""
        last_id = "$"  # only messages published after startup
        while True:
            try:
                streams = await self.redis.xread({self.config.stream_name: last_id}, count=10, block=0)
            except redis.RedisError as e:
                logger.warning("[%s] XREAD error: %s", self.config.node_id, e)
                await asyncio.sleep(1)
                continue

            for _, messages in streams or []:
                for message_id, fields in messages:
                    last_id = message_id
                    path = fields.get("path")
                    if path:
                        self._evict(path)

    async def handle_healthz(self, request: web.Request) -> web.Response:
        return web.Response(text="ok")

EDGE_NODE_KEY = web.AppKey("edge_node", EdgeNode)

async def start_invalidation_consumer(app: web.Application):
    node = app[EDGE_NODE_KEY]
    if node.redis is None and node.config.redis_url:
        node.redis = redis.from_url(node.config.redis_url, decode_responses=True)
        node.owns_redis = True
    if node.redis is not None:
        node.consumer = asyncio.create_task(node.consume_invalidations())

async def stop_invalidation_consumer(app: web.Application):
    node = app[EDGE_NODE_KEY]
    if node.consumer is not None:
        node.consumer.cancel()
        try:
            await node.consumer
        except asyncio.CancelledError:
            pass
        node.consumer = None
    if node.owns_redis:
        await node.redis.aclose()

def create_edge_app(config: EdgeNodeConfig, redis_client=None) -> web.Application:
    """Build the edge app. Pass redis_client to share an existing connection; otherwise
    one is opened from config.redis_url at startup."""
    node = EdgeNode(config, redis_client)
    app = web.Application()
    app[EDGE_NODE_KEY] = node
    app.on_startup.append(start_invalidation_consumer)
    app.on_cleanup.append(stop_invalidation_consumer)
    app.router.add_get("/ping", node.handle_ping)
    app.router.add_get("/assets/{path:.*}", node.handle_get_asset)
    app.router.add_post("/invalidate", node.handle_invalidate)
    app.router.add_get("/healthz", node.handle_healthz)
    return app
