from topflow.topology.basic import TopFile
from topflow.topology.document import HEADLINE_KEY, Document
from topflow.topology.indexer import ManifestEntry, MoleculeDefinition, index_molecules
from topflow.topology.molecule import (
    MoleculeBlock,
    read_molecule,
    read_molecule_from_string,
    read_molecules,
    read_molecules_from_string,
)
from topflow.topology.parser import ParseContext, TopologyParser, read_topology
from topflow.topology.preprocessor import (
    ConditionalFrame,
    ConditionalPreprocessor,
    Directive,
    parse_directive,
)

__all__ = [
    # from document
    "HEADLINE_KEY",
    "Document",
    # from molecule
    "MoleculeBlock",
    "read_molecule",
    "read_molecule_from_string",
    "read_molecules",
    "read_molecules_from_string",
    # from preprocessor
    "ConditionalFrame",
    "ConditionalPreprocessor",
    "Directive",
    "parse_directive",
    # from indexer
    "ManifestEntry",
    "MoleculeDefinition",
    "index_molecules",
    # from parser
    "ParseContext",
    "TopologyParser",
    "read_topology",
    # from basic
    "TopFile",
]
