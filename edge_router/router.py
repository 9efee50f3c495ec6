import asyncio
import logging
from typing import Sequence

import aiohttp

from .edges import Edge
from .latency import DEFAULT_PROBE_TIMEOUT, ProbeResult, probe

logger = logging.getLogger(__name__)

async def probe_edges(
    session: aiohttp.ClientSession,
    edges: Sequence[Edge],
    timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> list[tuple[Edge, ProbeResult | None]]:
    # One probe per edge, all in flight at once; wait for every one to settle
    coros = [probe(session, edge, timeout) for edge in edges]
    results = await asyncio.gather(*coros)
    return list(zip(edges, results))

def rank_candidates(results: list[tuple[Edge, ProbeResult | None]]) -> list[ProbeResult]:
    # sort() is stable, so equal latencies keep configuration order
    candidates = [result for _, result in results if result is not None]
    candidates.sort(key=lambda c: c.rtt_ms)
    return candidates

def pick_fastest(results: list[tuple[Edge, ProbeResult | None]]) -> Edge | None:
    candidates = rank_candidates(results)
    if not candidates:
        return None
    return candidates[0].edge

async def select_edge(
    session: aiohttp.ClientSession,
    edges: Sequence[Edge],
    timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> Edge | None:
    """Probe every edge and return the one with the lowest RTT, or None if none answered."""
    results = await probe_edges(session, edges, timeout)
    chosen = pick_fastest(results)
    logger.debug(
        "Probed %d edges, %d reachable, chose %s",
        len(results),
        sum(1 for _, r in results if r is not None),
        chosen,
    )
    return chosen
