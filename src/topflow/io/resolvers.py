"""Include resolvers: map the name found on an `#include` line to an input."""

import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from topflow.exceptions import IncludeError
from topflow.io.sources import ContentSource, InputSource, NoInput, PathSource, as_source
from topflow.utils import logger


def path_includer(name: str) -> InputSource:
    """Default resolver: the include name is used as a filesystem path, unchanged."""
    return PathSource(name)


class SearchPathIncluder:
    """Resolves include names against an ordered list of directories.

    Works like the include path of the GROMACS preprocessor: the first directory
    containing `name` wins. Absolute names are used as they are. The directory of every
    file already resolved is searched next, most recent first, so a force field file
    such as `amber99.ff/forcefield.itp` finds the files it includes next to it.

    Args:
        *directories: Directories searched in order.
        skip_missing: If True, a name found nowhere resolves to `NoInput` and the include is
            silently skipped (useful for force field files that are not shipped with a system).
            If False, an `IncludeError` is raised.
    """

    def __init__(self, *directories: str | os.PathLike[str], skip_missing: bool = False):
        if not directories:
            directories = (Path.cwd(),)
        self.directories: Sequence[Path] = [Path(d) for d in directories]
        self.skip_missing = skip_missing
        self.include_dirs: list[Path] = []

    def __repr__(self) -> str:
        dirs = ", ".join(str(d) for d in self.directories)
        return f"{type(self).__name__}({dirs}, skip_missing={self.skip_missing})"

    def search_order(self) -> list[Path]:
        """Directories searched for a relative name, in order."""
        order = list(self.directories)
        for directory in reversed(self.include_dirs):
            if directory not in order:
                order.append(directory)
        return order

    def find(self, name: str) -> Path | None:
        """Return the first existing file named `name`, or None."""
        candidate = Path(name)
        if candidate.is_absolute():
            return candidate if candidate.is_file() else None

        for directory in self.search_order():
            path = directory / candidate
            if path.is_file():
                return path
        return None

    def __call__(self, name: str) -> InputSource:
        path = self.find(name)
        if path is not None:
            logger.debug(f"Resolved include '{name}' => {path}")
            # Most recent last; duplicates move to the end.
            if path.parent in self.include_dirs:
                self.include_dirs.remove(path.parent)
            self.include_dirs.append(path.parent)
            return PathSource(path)

        if self.skip_missing:
            logger.info(f"Include '{name}' not found in search path, skipping.")
            return NoInput()
        searched = ", ".join(str(d) for d in self.search_order())
        raise IncludeError(f"Include '{name}' not found in: {searched}", name)


class MappingIncluder:
    """Resolves include names from an in-memory mapping.

    String values are taken as file content; any other value is passed through `as_source`.

    Args:
        files: Mapping from include name to content.
        skip_missing: If True, unknown names are skipped. Otherwise an `IncludeError` is raised.
    """

    def __init__(self, files: Mapping[str, Any], skip_missing: bool = True):
        self.files = dict(files)
        self.skip_missing = skip_missing
        self.requested: list[str] = []

    def __call__(self, name: str) -> InputSource:
        self.requested.append(name)

        if name not in self.files:
            if self.skip_missing:
                logger.debug(f"Include '{name}' not provided, skipping.")
                return NoInput()
            raise IncludeError(f"Include '{name}' was not provided.", name)

        value = self.files[name]
        if isinstance(value, str):
            return ContentSource(value)
        return as_source(value)
