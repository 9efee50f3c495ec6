from dataclasses import dataclass

PING_PATH = "/ping"
ASSET_PREFIX = "/assets"
SELECTED_EDGE_HEADER = "X-Selected-Edge"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

@dataclass(frozen=True)
class Edge:
    base_url: str     # "http://edge-a:8080", no trailing slash

    def __post_init__(self):
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @property
    def ping_url(self) -> str:
        return f"{self.base_url}{PING_PATH}"

    def __str__(self) -> str:
        return self.base_url

def parse_edges(raw: str | None) -> list[Edge]:
    """Parse a comma-separated list of edge base URLs, keeping configuration order."""
    if not raw:
        return []
    return [Edge(part.strip()) for part in raw.split(",") if part.strip()]
