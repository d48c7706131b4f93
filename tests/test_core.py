"""Tests for core.py functionality."""

import pytest
from _pytest.logging import LogCaptureFixture

from topflow.core import DEFAULT_MAX_INCLUDE_DEPTH, ParserOptions
from topflow.exceptions import ConfigurationError


def test_default_options() -> None:
    """Defaults enable preprocessing with an empty symbol table."""
    options = ParserOptions()
    assert options.enable_preprocessors is True
    assert dict(options.defines) == {}
    assert options.max_include_depth == DEFAULT_MAX_INCLUDE_DEPTH
    assert options.encoding == "utf-8"


def test_defines_are_read_only() -> None:
    """The define table is copied and frozen at construction."""
    source = {"POSRES": True}
    options = ParserOptions(defines=source)
    source["FLEXIBLE"] = True

    assert "FLEXIBLE" not in options.defines
    with pytest.raises(TypeError):
        options.defines["OTHER"] = 1  # type: ignore[index]


@pytest.mark.parametrize("depth", [0, -3, 2.5])
def test_invalid_include_depth(depth: object) -> None:
    with pytest.raises(ConfigurationError, match="max_include_depth"):
        ParserOptions(max_include_depth=depth)  # type: ignore[arg-type]


@pytest.mark.parametrize("name", ["", "TWO WORDS", "TAB\tNAME"])
def test_invalid_define_name(name: str) -> None:
    with pytest.raises(ConfigurationError, match="Invalid define name"):
        ParserOptions(defines={name: True})


def test_invalid_define_value() -> None:
    with pytest.raises(ConfigurationError, match="Invalid value for define 'POSRES'"):
        ParserOptions(defines={"POSRES": [1, 2]})  # type: ignore[dict-item]


def test_empty_encoding() -> None:
    with pytest.raises(ConfigurationError, match="encoding"):
        ParserOptions(encoding="")


def test_with_define_returns_new_instance() -> None:
    """Fluent setter leaves the original untouched."""
    base = ParserOptions(defines={"A": True})
    updated = base.with_define("POSRES_FC", 1000)

    assert dict(base.defines) == {"A": True}
    assert dict(updated.defines) == {"A": True, "POSRES_FC": 1000}


def test_without_preprocessors_warns_about_defines(caplog: LogCaptureFixture) -> None:
    """Defines are useless once preprocessing is off; a warning says so."""
    with caplog.at_level("WARNING", logger="topflow"):
        options = ParserOptions(defines={"POSRES": True}).without_preprocessors()

    assert options.enable_preprocessors is False
    assert "preprocessors are disabled" in caplog.text
