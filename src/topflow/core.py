from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from topflow.exceptions import ConfigurationError
from topflow.typing import DefineValue
from topflow.utils import logger

DEFAULT_MAX_INCLUDE_DEPTH = 64


@dataclass(frozen=True)
class ParserOptions:
    """
    Configuration for `TopologyParser`.

    Attributes:
        enable_preprocessors (bool): Evaluate `#define`, `#ifdef`, `#ifndef`, `#else` and `#endif`.
            When False, only `#include` is interpreted and every other directive line is kept as content.
        defines (Mapping[str, DefineValue]): Symbols defined before the first line is read,
            like `-D` flags given to grompp.
        max_include_depth (int): Maximum nesting of `#include` statements. Guards against files including themselves.
        encoding (str): Text encoding used to decode paths, binary streams and blobs.
    """

    enable_preprocessors: bool = True
    defines: Mapping[str, DefineValue] = field(default_factory=dict)
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        """
        Validates the options and freezes the define table.

        Raises:
            ConfigurationError: If `max_include_depth` is not a positive integer.
            ConfigurationError: If a define name is empty or contains whitespace.
            ConfigurationError: If a define value is not a bool, number or string.
            ConfigurationError: If `encoding` is empty.
        """
        if not isinstance(self.max_include_depth, int) or self.max_include_depth < 1:
            raise ConfigurationError(f"max_include_depth must be a positive integer, got {self.max_include_depth!r}.")

        if not self.encoding:
            raise ConfigurationError("encoding must be a non-empty string.")

        for name, value in self.defines.items():
            if not isinstance(name, str) or not name or any(c.isspace() for c in name):
                raise ConfigurationError(f"Invalid define name {name!r}.")
            if not isinstance(value, bool | int | float | str):
                raise ConfigurationError(f"Invalid value for define '{name}': {value!r}.")

        # Frozen dataclass: bypass __setattr__ to store a read-only copy.
        object.__setattr__(self, "defines", MappingProxyType(dict(self.defines)))

        if not self.enable_preprocessors and self.defines:
            logger.warning("Defines were given but preprocessors are disabled; they will never be evaluated.")

    def with_define(self, name: str, value: DefineValue = True) -> "ParserOptions":
        """Return a copy of the options with `name` defined."""
        return replace(self, defines={**self.defines, name: value})

    def without_preprocessors(self) -> "ParserOptions":
        """Return a copy of the options with conditional preprocessing disabled."""
        return replace(self, enable_preprocessors=False)
