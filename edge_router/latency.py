import asyncio
import logging
import time
from dataclasses import dataclass

import aiohttp

from .edges import Edge

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 2.0

@dataclass(frozen=True)
class ProbeResult:
    edge: Edge
    rtt_ms: float

async def probe(
    session: aiohttp.ClientSession,
    edge: Edge,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> ProbeResult | None:
    """Ping one edge once and measure the round trip.

    Returns None on timeout, transport error or a non-2xx answer. A failed
    probe is not retried.
    """
    try:
        start = time.perf_counter()
        async with session.get(edge.ping_url, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
            response.raise_for_status()
            await response.read()
        end = time.perf_counter()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.debug("Probe of %s failed: %r", edge, e)
        return None

    return ProbeResult(edge=edge, rtt_ms=(end - start) * 1000.0)
