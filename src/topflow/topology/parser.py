"""Topology parser with include resolution and conditional preprocessing.

`TopologyParser` reads a system topology (.top) line by line. `#include` statements are
followed through an include resolver, `#ifdef`-style conditionals are evaluated, and every
`[ moleculetype ]` is split into its own `MoleculeBlock`. Once the input is exhausted, the
`[ molecules ]` manifest is linked to those blocks by name.

Unlike `TopFile`, the result cannot be written back in the exact form of its input files:
includes are inlined and skipped branches are gone.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from typing import Any

from topflow.core import ParserOptions
from topflow.exceptions import IncludeError, MoleculeOrderError, ParserStateError, ParsingError
from topflow.io.resolvers import path_includer
from topflow.io.sources import InputSource, as_source, describe_source, iter_lines
from topflow.topology.document import HEADLINE_KEY, INCLUDE_PREFIX, Document, include_target, match_field
from topflow.topology.indexer import ManifestEntry, MoleculeDefinition, index_molecules, join_manifest
from topflow.topology.molecule import MOLECULETYPE_FIELD, MoleculeBlock
from topflow.topology.preprocessor import (
    DIRECTIVE_PREFIX,
    NOT_A_DIRECTIVE,
    SKIP,
    ConditionalPreprocessor,
    parse_directive,
)
from topflow.typing import DefineValue, Includer
from topflow.utils import logger

SYSTEM_FIELD = "system"
MOLECULES_FIELD = "molecules"


@dataclass
class ParseContext:
    """State shared by reference across the whole recursive read of one topology."""

    preprocessor: ConditionalPreprocessor
    includer: Includer
    options: ParserOptions
    include_depth: int = 0


class TopologyParser(Document):
    """
    Parse a system topology and the files it includes.

    Construct, optionally `define()` symbols, then call `read()` once.

    Args:
        options: Parser configuration. Defaults to `ParserOptions()`.
        enable_preprocessors: Shortcut overriding `options.enable_preprocessors`.

    Attributes:
        molecule_stash: Every molecule block read, in file order, including blocks
            shadowed by a later definition of the same type.
        manifest: One `ManifestEntry` per line of the `[ molecules ]` field.
    """

    def __init__(self, options: ParserOptions | None = None, *, enable_preprocessors: bool | None = None):
        super().__init__()
        options = options or ParserOptions()
        if enable_preprocessors is not None and enable_preprocessors != options.enable_preprocessors:
            options = replace(options, enable_preprocessors=enable_preprocessors)
        self.options = options

        self.molecule_stash: list[MoleculeBlock] = []
        self.manifest: list[ManifestEntry] = []

        self._name = ""
        self._current_field = HEADLINE_KEY
        self._current_molecule: MoleculeBlock | None = None
        self._system_started = False
        self._includer: Includer = path_includer
        self._preprocessor = ConditionalPreprocessor(dict(options.defines))
        self._read_called = False

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name='{self._name}', molecules={len(self.manifest)}, "
            f"blocks={len(self.molecule_stash)})"
        )

    @property
    def enable_preprocessors(self) -> bool:
        return self.options.enable_preprocessors

    # --- Before read --- #

    def define(self, name: str, value: DefineValue = True) -> None:
        """Define a symbol usable by `#ifdef` and `#ifndef`. Must be called before `read()`."""
        if self._read_called:
            raise ParserStateError("Symbols must be defined before read() is called.")
        self._preprocessor.define(name, value)

    def read(self, source: InputSource | Any, includer: Includer | None = None) -> "TopologyParser":
        """
        Read the topology. Can only be called once per instance.

        Args:
            source: Where the topology comes from: an `InputSource` or any value accepted by `as_source`.
            includer: Resolver called with the name of every included file. Defaults to
                `path_includer`, which treats the name as a path.

        Returns:
            The parser itself, now holding fields, molecule blocks and the manifest.

        Raises:
            ParserStateError: If `read()` was already called.
            ParsingError: If the source is `NoInput`, or on any fatal parsing condition.
            OSError: If the root path cannot be opened.
        """
        if self._read_called:
            raise ParserStateError("read() can only be called once per parser.")
        self._read_called = True

        if includer is not None:
            self._includer = includer

        src = as_source(source)
        reader = iter_lines(src, self.options.encoding)
        if reader is None:
            raise ParsingError("You must specify an entry point for the topology file.")

        filename = describe_source(src)
        ctx = ParseContext(preprocessor=self._preprocessor, includer=self._includer, options=self.options)
        logger.info(f"Starting topology parsing of {filename} (preprocessors={self.enable_preprocessors}).")

        try:
            self._read_lines_from(reader, filename, ctx)
        except ParsingError:
            raise
        except Exception as e:
            logger.critical(f"Unexpected critical error while parsing {filename}: {e}", exc_info=True)
            raise ParsingError(f"An unexpected critical error occurred during parsing: {e}") from e

        self._indexate()
        logger.info(
            f"Topology parsing finished. System: '{self._name}', "
            f"{len(self.manifest)} manifest entries, {len(self.molecule_stash)} molecule block(s)."
        )
        return self

    # --- Line loop --- #

    def _indexate(self) -> None:
        self.manifest = index_molecules(self.molecule_stash, self.get_field(MOLECULES_FIELD, without_comments=True))

    def _read_lines_from(self, reader: Iterable[str], filename: str, ctx: ParseContext) -> None:
        readable = True
        start_level = ctx.preprocessor.depth

        for line_no, line in enumerate(reader, start=1):
            trimmed = line.strip()
            if not trimmed:
                continue

            # 1- Preprocessor instruction
            if self.enable_preprocessors and trimmed.startswith(DIRECTIVE_PREFIX):
                directive = parse_directive(trimmed)
                result = ctx.preprocessor.evaluate(directive, readable, line_no, filename)

                if isinstance(result, bool):
                    readable = result
                    continue
                if result is SKIP:
                    continue
                # NOT_A_DIRECTIVE: #include or unsupported instruction, routed below

            if not readable:
                continue

            if trimmed.startswith(INCLUDE_PREFIX):
                self._include(trimmed, ctx, line_no, filename)
                continue

            if self.enable_preprocessors and trimmed.startswith(DIRECTIVE_PREFIX):
                logger.debug(f"Ignoring unsupported directive on line {line_no} in {filename}: {trimmed}")
                continue

            # 2- Field header
            field = match_field(trimmed)
            if field is not None:
                self._enter_field(field, line_no, filename)
                continue

            # 3- Content
            self._store(trimmed)

        if start_level != ctx.preprocessor.depth:
            logger.warning(
                f"Unexpected if/else stack ending in {filename}: depth {start_level} at start, "
                f"{ctx.preprocessor.depth} at end ({[f.name for f in ctx.preprocessor.stack]})."
            )

    def _enter_field(self, field: str, line_no: int, filename: str) -> None:
        self._current_field = field

        if field == MOLECULETYPE_FIELD:
            if self._system_started:
                raise MoleculeOrderError(
                    f"You can't describe molecules after a system definition (line {line_no} in file {filename})."
                )
            self._current_molecule = MoleculeBlock()
            self.molecule_stash.append(self._current_molecule)
            logger.debug(f"New moleculetype block #{len(self.molecule_stash)} on line {line_no} in {filename}.")
        elif field in (SYSTEM_FIELD, MOLECULES_FIELD):
            # Molecule definitions are over; next lines describe the system.
            self._current_molecule = None
            self._system_started = True

    def _store(self, line: str) -> None:
        field = self._current_field
        molecule = self._current_molecule

        if molecule is not None:
            molecule.append_field_line(field, line)
            return

        if field == SYSTEM_FIELD:
            self._name += line
        self.append_field_line(field, line)

    def _include(self, line: str, ctx: ParseContext, line_no: int, filename: str) -> None:
        owner = self._current_molecule if self._current_molecule is not None else self
        owner.add_include_line(line)
        target = include_target(line)

        if ctx.include_depth >= ctx.options.max_include_depth:
            raise IncludeError(
                f"Include depth limit ({ctx.options.max_include_depth}) exceeded by '{target}' "
                f"on line {line_no} in file {filename}. Is a file including itself?",
                target,
            )

        try:
            source = as_source(ctx.includer(target))
        except IncludeError:
            raise
        except Exception as e:
            logger.error(f"Include resolver failed for '{target}' on line {line_no} in file {filename}: {e}")
            raise IncludeError(f"Could not resolve include '{target}': {e}", target) from e

        try:
            reader = iter_lines(source, ctx.options.encoding)
        except OSError as e:
            logger.error(f"Could not open include '{target}' on line {line_no} in file {filename}: {e}")
            raise IncludeError(f"Could not open include '{target}': {e}", target) from e

        if reader is None:
            logger.debug(f"Include '{target}' resolved to no input, skipping.")
            return

        logger.info(f"Including '{target}' from {filename} (depth {ctx.include_depth + 1}).")
        ctx.include_depth += 1
        try:
            self._read_lines_from(reader, target, ctx)
        finally:
            ctx.include_depth -= 1

    # --- After read --- #

    @property
    def name(self) -> str:
        """Name of the system, the concatenated lines of the `[ system ]` field."""
        return self._name

    @property
    def system(self) -> list[str]:
        return self.get_field(SYSTEM_FIELD)

    @property
    def defines(self) -> dict[str, DefineValue]:
        """Symbol table at the end of the read."""
        return self._preprocessor.defines

    @property
    def conditional_depth(self) -> int:
        """Open conditionals left on the stack. 0 for well-formed input."""
        return self._preprocessor.depth

    @property
    def molecules(self) -> list[MoleculeDefinition]:
        """Molecules of the system in `[ molecules ]` order, each with its block (or None)."""
        return join_manifest(self.manifest, self.molecule_stash)

    @property
    def registered_molecules(self) -> list[MoleculeBlock]:
        """Distinct blocks referenced by the manifest, in order of first appearance."""
        seen: set[int] = set()
        blocks: list[MoleculeBlock] = []
        for entry in self.manifest:
            if entry.block_index is None or entry.block_index in seen:
                continue
            seen.add(entry.block_index)
            blocks.append(self.molecule_stash[entry.block_index])
        return blocks

    def get_molecule(self, type_name: str) -> list[MoleculeDefinition]:
        """All manifest entries for molecule type `type_name`."""
        return [mol for mol in self.molecules if mol.type == type_name]

    @property
    def nested_includes(self) -> list[str]:
        """Include lines of the topology and of every molecule block, without duplicates."""
        includes = dict.fromkeys(self.includes)
        for block in self.molecule_stash:
            includes.update(dict.fromkeys(block.includes))
        return list(includes)

    def iter_text(self) -> Iterator[str]:
        """Yield the system as text: preamble, each referenced molecule once, then the other fields."""
        for line in self.headlines:
            yield line + "\n"

        for block in self.registered_molecules:
            yield from block.iter_text()

        for field, lines in self.data.items():
            if field == HEADLINE_KEY:
                continue
            yield f"\n[{field}]\n"
            for line in lines:
                yield line + "\n"

    def dispose(self) -> None:
        """Drop all stored lines, including those of molecule blocks."""
        super().dispose()
        for block in self.molecule_stash:
            block.dispose()
        self.molecule_stash = []
        self.manifest = []


def read_topology(
    source: InputSource | Any,
    includer: Includer | None = None,
    options: ParserOptions | None = None,
) -> TopologyParser:
    """Parse a topology in one call. See `TopologyParser.read`."""
    return TopologyParser(options).read(source, includer)
