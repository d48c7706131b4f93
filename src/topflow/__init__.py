"""Parse GROMACS topologies: includes, conditional directives and molecule definitions."""

from topflow.core import ParserOptions
from topflow.io import (
    BlobSource,
    ContentSource,
    MappingIncluder,
    NoInput,
    PathSource,
    SearchPathIncluder,
    StreamSource,
    path_includer,
)
from topflow.topology import (
    Document,
    ManifestEntry,
    MoleculeBlock,
    MoleculeDefinition,
    TopFile,
    TopologyParser,
    read_molecules,
    read_topology,
)

__version__ = "0.1.0"

__all__ = [
    "ParserOptions",
    "BlobSource",
    "ContentSource",
    "MappingIncluder",
    "NoInput",
    "PathSource",
    "SearchPathIncluder",
    "StreamSource",
    "path_includer",
    "Document",
    "ManifestEntry",
    "MoleculeBlock",
    "MoleculeDefinition",
    "TopFile",
    "TopologyParser",
    "read_molecules",
    "read_topology",
]
