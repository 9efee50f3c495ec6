from typing import Any

class EdgeRouterError(Exception):
    """Base class for failures that are reported back to the caller."""

    status = 500
    message = "internal error"

    def __init__(self, details: str | None = None):
        super().__init__(self.message if details is None else f"{self.message}: {details}")
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload

class InvalidInput(EdgeRouterError):
    status = 400
    message = "query ?path=/your/file.txt required (leading slash)"

class NoEdgeReachable(EdgeRouterError):
    status = 503
    message = "no edges reachable"

class EdgeFetchFailed(EdgeRouterError):
    status = 502
    message = "edge fetch failed"

class ConfigError(ValueError):
    pass
