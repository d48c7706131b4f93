import logging
from pathlib import Path

from topflow.io import SearchPathIncluder
from topflow.topology import TopFile, TopologyParser
from topflow.utils import logger

logging.basicConfig(level=logging.WARNING, format="%(levelname)s:%(name)s:%(message)s")
logger.setLevel(logging.INFO)

data_path = Path(__file__).resolve().parents[1] / "data"
membrane = data_path / "topologies" / "membrane"


run = {
    "advanced": True,
    "basic": True,
}

if run["advanced"]:
    parser = TopologyParser()
    parser.define("FLEXIBLE")
    parser.read(membrane / "system.top", SearchPathIncluder(membrane, skip_missing=True))

    print(f"System: {parser.name}")
    for mol in parser.molecules:
        status = f"nrexcl={mol.block.nrexcl}" if mol.block else "no moleculetype read"
        print(f"  {mol.type:<8} x{mol.count}  ({status})")

if run["basic"]:
    top = TopFile.read(membrane / "basic.top", [membrane / "lipids.itp"])
    print(top.to_string())
