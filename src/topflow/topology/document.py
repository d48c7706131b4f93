"""Plain field storage for topology (.top) and include topology (.itp) files.

A document maps each `[ section ]` name ("field") to the raw lines found under it,
in file order. Lines seen before any section header are stored under `HEADLINE_KEY`.
"""

import re
from collections.abc import Iterable, Iterator

HEADLINE_KEY = "_____begin_____"
BLANK_PAT = re.compile(r"\s+")
FIELD_PAT = re.compile(r"^\[ *(\w+) *\]$")
COMMENT_PREFIX = ";"
INCLUDE_PREFIX = "#include"


def include_target(line: str) -> str:
    """Return the name between the first pair of double quotes of an `#include` line ('' if none)."""
    parts = line.split('"')
    return parts[1] if len(parts) > 1 else ""


def match_field(line: str) -> str | None:
    """Return the section name if `line` (already stripped) is a `[ name ]` header."""
    match = FIELD_PAT.match(line)
    return match.group(1).strip() if match else None


class Document:
    """Ordered mapping of field names to raw lines, plus the `#include` lines seen."""

    def __init__(self) -> None:
        self.data: dict[str, list[str]] = {}
        self._includes: list[str] = []

    def __repr__(self) -> str:
        fields = [f for f in self.data if f != HEADLINE_KEY]
        return f"{type(self).__name__}(fields={fields}, includes={len(self._includes)})"

    # --- Reading --- #

    def read_line(self, line: str, current_field: str) -> str | None:
        """Route one raw line without any preprocessing.

        Args:
            line: The raw line.
            current_field: Field receiving content lines.

        Returns:
            The new field name if the line is a section header, otherwise None.
        """
        trimmed = line.strip()
        if not trimmed:
            return None

        new_field = match_field(trimmed)
        if new_field is not None:
            return new_field

        if trimmed.startswith(INCLUDE_PREFIX):
            self._includes.append(trimmed)

        self.append_field_line(current_field, trimmed)
        return None

    def read_lines(self, lines: Iterable[str], field: str = HEADLINE_KEY) -> str:
        """Feed every line through `read_line`. Returns the field active after the last line."""
        for line in lines:
            new_field = self.read_line(line, field)
            if new_field:
                field = new_field
        return field

    # --- Field access --- #

    def get_field(self, name: str, without_comments: bool = False) -> list[str]:
        """Lines of field `name`, or an empty list. Comment lines (`;`) are dropped if asked."""
        if name not in self.data:
            return []
        if without_comments:
            return [line for line in self.data[name] if not line.startswith(COMMENT_PREFIX)]
        return self.data[name]

    def set_field(self, name: str, lines: list[str]) -> None:
        """Create or replace field `name`."""
        self.data[name] = lines

    def remove_field(self, name: str) -> None:
        self.data.pop(name, None)

    def has_field(self, name: str) -> bool:
        return name in self.data

    def append_field(self, name: str, lines: Iterable[str]) -> None:
        """Append `lines` to field `name`, creating it if needed."""
        self.data.setdefault(name, []).extend(lines)

    def append_field_line(self, name: str, line: str) -> None:
        """Append a single line to field `name`, creating it if needed."""
        self.data.setdefault(name, []).append(line)

    @property
    def fields(self) -> list[str]:
        """Field names in insertion order, preamble excluded."""
        return [name for name in self.data if name != HEADLINE_KEY]

    # --- Sub-fields --- #
    # A sub-field is the group of lines following a `; <title>` comment inside a field,
    # up to the next comment line.

    def get_subfield(self, field_name: str, subfield: str, with_header: bool = True) -> list[str]:
        """Lines of the sub-field titled `subfield` inside `field_name`."""
        in_subfield = False
        lines: list[str] = []

        for row in self.get_field(field_name):
            if row == f"{COMMENT_PREFIX} {subfield}":
                in_subfield = True
            elif row.startswith(COMMENT_PREFIX):
                in_subfield = False
            if in_subfield:
                lines.append(row)

        if not with_header and lines and lines[0].startswith(COMMENT_PREFIX):
            lines.pop(0)
        return lines

    def get_subfield_names(self, field_name: str) -> list[str]:
        """Comment lines of a field, i.e. the headers of its sub-fields."""
        return [line for line in self.get_field(field_name) if line.startswith(COMMENT_PREFIX)]

    def remove_subfield(self, field_name: str, subfield: str) -> None:
        """Drop the sub-field titled `subfield` (header included) from `field_name`."""
        if field_name not in self.data:
            return

        kept: list[str] = []
        in_subfield = False
        for row in self.data[field_name]:
            if row == f"{COMMENT_PREFIX} {subfield}":
                in_subfield = True
            elif row.startswith(COMMENT_PREFIX):
                in_subfield = False
            if not in_subfield:
                kept.append(row)
        self.data[field_name] = kept

    # --- Includes --- #

    def append_include(self, path: str, field: str) -> None:
        """Register `path` as included and add an `#include` statement at the end of `field`."""
        self._includes.append(path)
        self.append_field_line(field, f'{INCLUDE_PREFIX} "{path}"')

    def add_include_line(self, line: str) -> None:
        """Record a raw `#include` line without storing it as content."""
        self._includes.append(line)

    @property
    def includes(self) -> list[str]:
        """Raw `#include` lines, in the order they were seen."""
        return self._includes

    @property
    def included_files(self) -> list[str]:
        """Names between quotes of every `#include` line."""
        return [include_target(line) for line in self._includes]

    @property
    def headlines(self) -> list[str]:
        """Lines found before the first section header."""
        return self.get_field(HEADLINE_KEY)

    # --- Emission --- #

    def iter_text(self) -> Iterator[str]:
        """Yield the document as text, one chunk per header or line."""
        for name, lines in self.data.items():
            if name != HEADLINE_KEY:
                yield f"\n[{name}]\n"
            for line in lines:
                yield line + "\n"

    def to_string(self) -> str:
        return "".join(self.iter_text())

    def __str__(self) -> str:
        return self.to_string()

    def dispose(self) -> None:
        """Drop all stored lines. The document is empty afterwards."""
        self.data = {}
        self._includes = []
