from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from topflow.exceptions import ParsingError
from topflow.io.sources import ContentSource, as_source, describe_source, iter_lines
from topflow.topology.document import BLANK_PAT, Document
from topflow.topology.indexer import MoleculeDefinition, parse_count
from topflow.topology.molecule import MoleculeBlock, read_molecules, read_molecules_from_string
from topflow.utils import logger

MOLECULES_FIELD = "molecules"
SYSTEM_FIELD = "system"


# --- Mutable Data Structure (used while side-loading) --- #
@dataclass
class _MutableMoleculeDefinition:
    """Mutable version of MoleculeDefinition, filled as ITPs are registered."""

    type: str
    count: int | None
    block: MoleculeBlock | None = None


class TopFile(Document):
    """
    Topology read without preprocessing, keeping the layout of the input file.

    Directives and `#include` lines are stored as plain content, so `to_string()` gives back
    the file as written. Molecule definitions are attached afterwards by side-loading ITP
    inputs; each block is matched to the `[ molecules ]` entries of the same name.
    """

    def __init__(self) -> None:
        super().__init__()
        self._molecules: list[_MutableMoleculeDefinition] = []
        self.registered_itps: list[MoleculeBlock] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(molecules={[m.type for m in self._molecules]})"

    # --- Construction --- #

    @classmethod
    def read(cls, top: Any, itps: Iterable[Any] = ()) -> "TopFile":
        """
        Read a topology and the ITP inputs describing its molecules.

        Args:
            top: The topology, any value accepted by `as_source`.
            itps: ITP inputs. Each may hold several `moleculetype`s.

        Returns:
            The populated TopFile.

        Raises:
            ParsingError: If `top` is `NoInput`.
        """
        src = as_source(top)
        lines = iter_lines(src)
        if lines is None:
            raise ParsingError("You must specify a topology input.")

        instance = cls()
        instance.read_lines(lines)
        instance._init_molecules()
        logger.info(f"Read topology {describe_source(src)} with {len(instance._molecules)} molecule entries.")

        for itp in itps:
            instance.sideload_itp(itp)
        return instance

    @classmethod
    def from_string(cls, top: str, itps: Iterable[str] = ()) -> "TopFile":
        """Same as `read`, from in-memory strings."""
        instance = cls.read(ContentSource(top))
        for itp in itps:
            instance.sideload_itp_from_string(itp)
        return instance

    def _init_molecules(self) -> None:
        for line in self.get_field(MOLECULES_FIELD, without_comments=True):
            parts = BLANK_PAT.split(line, maxsplit=2)
            count = parse_count(parts[1] if len(parts) > 1 else None, parts[0])
            # Registered even if the moleculetype is never supplied.
            self._molecules.append(_MutableMoleculeDefinition(type=parts[0], count=count))

    # --- Side-loading --- #

    def sideload_itp(self, itp: Any) -> None:
        """Register every molecule block of an ITP input."""
        for block in read_molecules(itp):
            self._register(block)

    def sideload_itp_from_string(self, itp: str) -> None:
        for block in read_molecules_from_string(itp):
            self._register(block)

    def _register(self, block: MoleculeBlock) -> None:
        name = block.name
        matched = [mol for mol in self._molecules if mol.type == name]

        if not matched:
            logger.debug(f"Side-loaded moleculetype '{name}' is not listed in [ molecules ].")
            return

        for mol in matched:
            mol.block = block
        if block not in self.registered_itps:
            self.registered_itps.append(block)
        logger.debug(f"Registered moleculetype '{name}' for {len(matched)} manifest entries.")

    # --- Access --- #

    @property
    def molecules(self) -> list[MoleculeDefinition]:
        """Molecules in `[ molecules ]` order."""
        return [MoleculeDefinition(type=m.type, count=m.count, block=m.block) for m in self._molecules]

    @property
    def molecule_list(self) -> list[MoleculeBlock | None]:
        """Block of each manifest entry, None where no ITP was registered."""
        return [m.block for m in self._molecules]

    def get_molecule(self, name: str) -> list[MoleculeDefinition]:
        return [mol for mol in self.molecules if mol.type == name]

    @property
    def system(self) -> list[str]:
        return self.get_field(SYSTEM_FIELD)

    @property
    def nested_includes(self) -> list[str]:
        """Include lines of the topology and of every registered ITP, without duplicates."""
        includes = dict.fromkeys(self.includes)
        for mol in self._molecules:
            if mol.block is not None:
                includes.update(dict.fromkeys(mol.block.includes))
        return list(includes)

    def dispose(self) -> None:
        """Drop all stored lines, registered ITPs included."""
        super().dispose()
        for block in self.registered_itps:
            block.dispose()
