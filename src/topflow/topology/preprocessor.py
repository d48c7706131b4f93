"""Conditional compilation directives of GROMACS topologies.

Directive lines are parsed once into one of the closed set of variants below
(`Define`, `IfDef`, `IfNDef`, `Else`, `EndIf`, `Include`, `Unknown`), then evaluated by
`ConditionalPreprocessor` against its symbol table and conditional stack.

Readability rules:
    - `#ifdef`/`#ifndef` push a frame. Inside an unreadable branch they push a
      `NOT_READABLE` placeholder that only keeps `#endif`s balanced.
    - `#else` flips the top frame; a second `#else` at the same level is an error.
    - `#endif` pops the top frame and makes the input readable again, unless the popped
      frame is a placeholder. Readability is not re-derived from the frames below, so a
      branch nested two or more levels inside a skipped block is restored to readable as
      soon as its own `#endif` closes. Existing topologies rely on this behaviour.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias

from topflow.exceptions import InternalCodeError, PreprocessorError
from topflow.topology.document import BLANK_PAT, include_target
from topflow.typing import DefineValue
from topflow.utils import logger

DIRECTIVE_PREFIX = "#"


# --- Directive variants --- #


@dataclass(frozen=True)
class Define:
    name: str
    value: DefineValue = True


@dataclass(frozen=True)
class IfDef:
    name: str


@dataclass(frozen=True)
class IfNDef:
    name: str


@dataclass(frozen=True)
class Else:
    pass


@dataclass(frozen=True)
class EndIf:
    pass


@dataclass(frozen=True)
class Include:
    target: str


@dataclass(frozen=True)
class Unknown:
    """Any `#` instruction this preprocessor does not implement (e.g. `#undef`, `#error`)."""

    instruction: str
    argument: str = ""


Directive: TypeAlias = Define | IfDef | IfNDef | Else | EndIf | Include | Unknown


def coerce_define_value(raw: str | None) -> DefineValue:
    """Value of a `#define`: True when absent, a number when numeric, else the raw string."""
    if raw is None:
        return True
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        number = float(raw)
    except ValueError:
        return raw
    # "nan" and "inf" are names, not numbers, in a topology.
    return number if math.isfinite(number) else raw


def parse_directive(line: str) -> Directive:
    """Tokenise a directive line as `#<instruction> <argument...>`.

    Args:
        line: A line whose stripped form starts with `#`.

    Returns:
        The matching directive variant.

    Raises:
        InternalCodeError: If the line is not a directive at all.
    """
    trimmed = line.strip()
    if not trimmed.startswith(DIRECTIVE_PREFIX):
        raise InternalCodeError(f"Not a directive line: '{trimmed}'")

    parts = BLANK_PAT.split(trimmed[1:].strip(), maxsplit=1)
    instruction = parts[0]
    argument = parts[1].strip() if len(parts) > 1 else ""
    # First token only: `#ifdef POSRES ; comment` tests POSRES.
    name = argument.split()[0] if argument else ""

    if instruction == "define":
        if not name:
            return Unknown(instruction, argument)
        tokens = BLANK_PAT.split(argument, maxsplit=1)
        return Define(tokens[0], coerce_define_value(tokens[1] if len(tokens) > 1 else None))
    if instruction == "ifdef":
        return IfDef(name)
    if instruction == "ifndef":
        return IfNDef(name)
    if instruction == "else":
        return Else()
    if instruction == "endif":
        return EndIf()
    if instruction == "include":
        return Include(include_target(trimmed))
    return Unknown(instruction, argument)


# --- Evaluation --- #


class ConditionalFrame(Enum):
    NOT_READABLE = -1  # placeholder pushed inside an already skipped block
    UNVALIDATED = 0  # condition false, branch skipped
    VALIDATED = 1  # condition true, branch read
    ENTERED_ELSE = 2  # `#else` consumed at this level


class EvaluationResult(Enum):
    SKIP = "skip"  # consumed, readability unchanged
    NOT_A_DIRECTIVE = "not_a_directive"  # left to the caller to route


SKIP = EvaluationResult.SKIP
NOT_A_DIRECTIVE = EvaluationResult.NOT_A_DIRECTIVE


class ConditionalPreprocessor:
    """Symbol table and conditional stack shared by a whole parse, includes included."""

    def __init__(self, defines: dict[str, DefineValue] | None = None):
        self.defines: dict[str, DefineValue] = dict(defines) if defines else {}
        self.stack: list[ConditionalFrame] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(defines={self.defines}, depth={self.depth})"

    @property
    def depth(self) -> int:
        return len(self.stack)

    def define(self, name: str, value: DefineValue = True) -> None:
        self.defines[name] = value

    def is_defined(self, name: str) -> bool:
        return name in self.defines

    def evaluate(
        self,
        directive: Directive,
        readable: bool,
        line_no: int = 0,
        filename: str = "<unknown>",
    ) -> bool | EvaluationResult:
        """Apply one directive.

        Args:
            directive: Parsed directive.
            readable: Whether the enclosing scope is currently read.
            line_no: Line number, for error messages.
            filename: File name, for error messages.

        Returns:
            The new readability for conditionals, `SKIP` for consumed directives that do not
            change it, `NOT_A_DIRECTIVE` for `#include` and unknown instructions.

        Raises:
            PreprocessorError: On `#else`/`#endif` without an open conditional, or a second `#else`.
        """
        if isinstance(directive, Define):
            if readable:
                self.defines[directive.name] = directive.value
                logger.debug(f"Defined {directive.name} = {directive.value!r}")
            return SKIP

        if isinstance(directive, IfDef | IfNDef):
            return self._open(directive, readable)

        if isinstance(directive, Else):
            return self._else(readable, line_no, filename)

        if isinstance(directive, EndIf):
            return self._endif(readable, line_no, filename)

        if isinstance(directive, Include | Unknown):
            return NOT_A_DIRECTIVE

        raise InternalCodeError(f"Unhandled directive variant: {directive!r}")

    def _open(self, directive: IfDef | IfNDef, readable: bool) -> bool:
        if not readable:
            self.stack.append(ConditionalFrame.NOT_READABLE)
            return False

        taken = self.is_defined(directive.name)
        if isinstance(directive, IfNDef):
            taken = not taken

        self.stack.append(ConditionalFrame.VALIDATED if taken else ConditionalFrame.UNVALIDATED)
        return taken

    def _else(self, readable: bool, line_no: int, filename: str) -> bool:
        if not self.stack:
            raise PreprocessorError("Unexpected else statement", filename, line_no)

        frame = self.stack.pop()

        if frame is ConditionalFrame.UNVALIDATED:
            self.stack.append(ConditionalFrame.ENTERED_ELSE)
            return True
        if frame is ConditionalFrame.VALIDATED:
            self.stack.append(ConditionalFrame.ENTERED_ELSE)
            return False
        if frame is ConditionalFrame.ENTERED_ELSE:
            raise PreprocessorError("Unexpected else statement", filename, line_no)

        # Placeholder: still inside a skipped block.
        self.stack.append(ConditionalFrame.NOT_READABLE)
        return readable

    def _endif(self, readable: bool, line_no: int, filename: str) -> bool:
        if not self.stack:
            raise PreprocessorError("Unexpected endif statement", filename, line_no)

        frame = self.stack.pop()
        if frame is ConditionalFrame.NOT_READABLE:
            return readable
        return True
