import pytest
import os
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Environment variables for testing
os.environ.setdefault("ROUTER_LOG_LEVEL", "DEBUG")

from edge_router.config import Settings
from edge_router.edges import Edge

EDGE_A = Edge("http://edge-a.test:8080")
EDGE_B = Edge("http://edge-b.test:8080")
EDGE_C = Edge("http://edge-c.test:8080")

@pytest.fixture
def edges():
    return [EDGE_A, EDGE_B, EDGE_C]

@pytest.fixture
def settings(edges):
    return Settings.create(edges, probe_timeout=0.5, fetch_timeout=1.0)

@pytest.fixture
def assets_dir(tmp_path):
    """A small asset tree served by the simulated edges."""
    (tmp_path / "hello.txt").write_text("hello from the edge\n")
    (tmp_path / "img").mkdir()
    (tmp_path / "img" / "pixel.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\xff\xfe\x00")
    return tmp_path
