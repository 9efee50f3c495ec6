from dataclasses import dataclass
from typing import Iterable

from .client import DEFAULT_FETCH_TIMEOUT
from .edges import Edge
from .errors import ConfigError
from .latency import DEFAULT_PROBE_TIMEOUT

DEFAULT_PORT = 3000

@dataclass(frozen=True)
class Settings:
    edges: tuple[Edge, ...]
    port: int = DEFAULT_PORT
    enable_cors: bool = False
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT   # seconds
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT   # seconds

    @classmethod
    def create(
        cls,
        edges: Iterable[Edge],
        port: int = DEFAULT_PORT,
        enable_cors: bool = False,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> "Settings":
        """Validate and build settings; the edge list must not be empty."""
        edges = tuple(edges)
        if not edges:
            raise ConfigError("EDGES env var required (comma-separated list of edge base URLs)")
        if probe_timeout <= 0 or fetch_timeout <= 0:
            raise ConfigError("probe and fetch timeouts must be positive")
        if not 0 < port < 65536:
            raise ConfigError(f"Invalid port: {port}")
        return cls(
            edges=edges,
            port=port,
            enable_cors=enable_cors,
            probe_timeout=probe_timeout,
            fetch_timeout=fetch_timeout,
        )
