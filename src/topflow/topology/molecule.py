from collections.abc import Iterable
from typing import Any

from topflow.exceptions import ParsingError
from topflow.io.sources import ContentSource, as_source, describe_source, iter_lines
from topflow.topology.document import BLANK_PAT, HEADLINE_KEY, Document
from topflow.utils import logger

MOLECULETYPE_FIELD = "moleculetype"


class MoleculeBlock(Document):
    """A document scoped to one `[ moleculetype ]` section.

    The molecule is identified by the first token of the first non-comment line of its
    `moleculetype` field; the second token is `nrexcl`.
    """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(type='{self.type}', nrexcl={self.nrexcl}, fields={self.fields})"

    @property
    def name_and_nrexcl(self) -> tuple[str, int]:
        """Name and nrexcl declared in the `moleculetype` field, `("", 0)` if missing."""
        lines = self.get_field(MOLECULETYPE_FIELD, without_comments=True)
        if not lines:
            return "", 0

        parts = BLANK_PAT.split(lines[0])
        name = parts[0]
        if len(parts) < 2:
            return name, 0

        try:
            nrexcl = int(parts[1])
        except ValueError:
            logger.warning(f"Could not parse nrexcl of moleculetype '{name}' from line: {lines[0]}")
            nrexcl = 0
        return name, nrexcl

    @property
    def name(self) -> str:
        """Name specified in the `moleculetype` field."""
        return self.name_and_nrexcl[0]

    @property
    def type(self) -> str:
        """Alias for `name`."""
        return self.name

    @property
    def nrexcl(self) -> int:
        """Non-bonded exclusions between atoms no further than `nrexcl` bonds apart."""
        return self.name_and_nrexcl[1]

    @property
    def atoms(self) -> list[str]:
        return self.get_field("atoms")

    @property
    def bonds(self) -> list[str]:
        return self.get_field("bonds")

    @property
    def virtual_sites(self) -> list[str]:
        return self.get_field("virtual_sitesn")


def _split_molecules(lines: Iterable[str]) -> list[MoleculeBlock]:
    block = MoleculeBlock()
    blocks = [block]
    initial = True
    field = HEADLINE_KEY

    for line in lines:
        new_field = block.read_line(line, field)
        if not new_field:
            continue

        field = new_field
        # Lines before the first moleculetype stay with the first block.
        if field == MOLECULETYPE_FIELD:
            if initial:
                initial = False
            else:
                block = MoleculeBlock()
                blocks.append(block)

    return blocks


def read_molecules(source: Any) -> list[MoleculeBlock]:
    """Read an ITP that may hold several `[ moleculetype ]` sections.

    No preprocessing is done: directives are stored as content and includes are only recorded.

    Args:
        source: Any value accepted by `as_source`.

    Returns:
        One `MoleculeBlock` per `moleculetype`, in file order.

    Raises:
        ParsingError: If the source is `NoInput`.
    """
    src = as_source(source)
    lines = iter_lines(src)
    if lines is None:
        raise ParsingError("You must specify an input to read molecules from.")

    blocks = _split_molecules(lines)
    logger.debug(f"Read {len(blocks)} molecule block(s) from {describe_source(src)}")
    return blocks


def read_molecules_from_string(content: str) -> list[MoleculeBlock]:
    return read_molecules(ContentSource(content))


def read_molecule(source: Any) -> MoleculeBlock:
    """Read a whole input into a single `MoleculeBlock`, whatever the number of moleculetypes."""
    src = as_source(source)
    lines = iter_lines(src)
    if lines is None:
        raise ParsingError("You must specify an input to read a molecule from.")

    block = MoleculeBlock()
    block.read_lines(lines)
    return block


def read_molecule_from_string(content: str) -> MoleculeBlock:
    return read_molecule(ContentSource(content))
