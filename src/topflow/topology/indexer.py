from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from topflow.topology.document import BLANK_PAT, COMMENT_PREFIX
from topflow.topology.molecule import MoleculeBlock
from topflow.utils import logger


@dataclass(frozen=True)
class ManifestEntry:
    """One line of the `[ molecules ]` field.

    Attributes:
        type: Molecule type name.
        count: Number of copies, None when the count is missing or not an integer.
        block_index: Index of the matching block in the parser stash, None when no
            `moleculetype` of that name was read. An unresolved entry is a normal outcome.
    """

    type: str
    count: int | None
    block_index: int | None = None

    @property
    def resolved(self) -> bool:
        return self.block_index is not None

    def resolve(self, stash: Sequence[MoleculeBlock]) -> MoleculeBlock | None:
        """Return the block this entry points to in `stash`, or None."""
        if self.block_index is None:
            return None
        return stash[self.block_index]


def parse_count(raw: str | None, type_name: str) -> int | None:
    """Parse the molecule count of a manifest line; None if it is not an integer."""
    if raw is None:
        logger.warning(f"Missing molecule count for '{type_name}' in [ molecules ].")
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid molecule count for '{type_name}' in [ molecules ]: {raw!r}")
        return None


def index_molecules(stash: Sequence[MoleculeBlock], manifest_lines: Iterable[str]) -> list[ManifestEntry]:
    """Link every manifest line to the molecule block of the same type.

    Args:
        stash: Molecule blocks in file order. When two blocks share a type, the last one wins.
        manifest_lines: Lines of the `molecules` field.

    Returns:
        One entry per non-comment manifest line, in line order. Duplicated types give
        separate entries, each resolved on its own.
    """
    types: dict[str, int] = {}
    for index, block in enumerate(stash):
        types[block.type] = index

    entries: list[ManifestEntry] = []
    for line in manifest_lines:
        if not line.strip() or line.startswith(COMMENT_PREFIX):
            continue

        parts = BLANK_PAT.split(line.strip(), maxsplit=2)
        type_name = parts[0]
        count = parse_count(parts[1] if len(parts) > 1 else None, type_name)
        index = types.get(type_name)

        if index is None:
            logger.debug(f"No moleculetype read for manifest entry '{type_name}'.")
        entries.append(ManifestEntry(type=type_name, count=count, block_index=index))

    logger.debug(
        f"Indexed {len(entries)} manifest entries, {sum(e.resolved for e in entries)} resolved "
        f"against {len(stash)} molecule block(s)."
    )
    return entries


@dataclass(frozen=True)
class MoleculeDefinition:
    """A manifest entry joined with the molecule block it names (None when unresolved)."""

    type: str
    count: int | None
    block: MoleculeBlock | None = None


def join_manifest(entries: Iterable[ManifestEntry], stash: Sequence[MoleculeBlock]) -> list[MoleculeDefinition]:
    """Resolve every entry against `stash`, preserving order."""
    return [MoleculeDefinition(type=e.type, count=e.count, block=e.resolve(stash)) for e in entries]
