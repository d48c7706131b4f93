from pathlib import Path

import pytest

from topflow.io import SearchPathIncluder
from topflow.topology import TopologyParser

# Sample topologies shipped with the repository
DATA_DIR = Path(__file__).resolve().parents[1] / "data" / "topologies"
MEMBRANE_DIR = DATA_DIR / "membrane"


@pytest.fixture(scope="session")
def membrane_dir() -> Path:
    """Directory holding the membrane example (system.top and its ITPs)."""
    return MEMBRANE_DIR


@pytest.fixture(scope="module")
def parsed_membrane() -> TopologyParser:
    """Fixture to parse the full membrane system, resolving includes next to system.top."""
    parser = TopologyParser()
    return parser.read(MEMBRANE_DIR / "system.top", SearchPathIncluder(MEMBRANE_DIR))
