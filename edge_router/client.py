import asyncio
import logging
from dataclasses import dataclass

import aiohttp

from .edges import ASSET_PREFIX, DEFAULT_CONTENT_TYPE, Edge
from .errors import EdgeFetchFailed

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 4.0

@dataclass(frozen=True)
class ForwardedAsset:
    edge: Edge
    status: int
    content_type: str
    body: bytes

def build_asset_url(edge: Edge, resource_path: str) -> str:
    return f"{edge.base_url}{ASSET_PREFIX}{resource_path}"

async def forward(
    session: aiohttp.ClientSession,
    edge: Edge,
    resource_path: str,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
) -> ForwardedAsset:
    """
    Fetch an asset from the chosen edge.

    Args:
        session: Session owned by the inbound request
        edge: The edge picked by the selector
        resource_path: Absolute asset path, e.g. "/hello.txt"
        timeout: Upper bound for the whole transfer, in seconds

    Returns:
        The upstream status, content type and raw body. Non-2xx answers are
        relayed as they are.

    Raises:
        EdgeFetchFailed: If the edge cannot be reached or the transfer times out
    """
    url = build_asset_url(edge, resource_path)

    try:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
            body = await response.read()
            content_type = response.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE
            status = response.status
    except asyncio.TimeoutError as e:
        logger.warning("Fetch of %s from %s timed out after %.1fs", resource_path, edge, timeout)
        raise EdgeFetchFailed(f"timeout of {int(timeout * 1000)}ms exceeded") from e
    except aiohttp.ClientError as e:
        logger.warning("Fetch of %s from %s failed: %s", resource_path, edge, e)
        raise EdgeFetchFailed(str(e) or e.__class__.__name__) from e

    return ForwardedAsset(edge=edge, status=status, content_type=content_type, body=body)
