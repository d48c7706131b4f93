import pytest

from topflow.exceptions import InternalCodeError, PreprocessorError
from topflow.topology.preprocessor import (
    NOT_A_DIRECTIVE,
    SKIP,
    ConditionalFrame,
    ConditionalPreprocessor,
    Define,
    Else,
    EndIf,
    IfDef,
    IfNDef,
    Include,
    Unknown,
    coerce_define_value,
    parse_directive,
)


@pytest.fixture
def preprocessor() -> ConditionalPreprocessor:
    """Provides a fresh preprocessor with FLEXIBLE defined."""
    return ConditionalPreprocessor({"FLEXIBLE": True})


def run(preprocessor: ConditionalPreprocessor, lines: list[str], readable: bool = True) -> bool:
    """Feed directive lines one by one, returning the final readability."""
    for no, line in enumerate(lines, start=1):
        result = preprocessor.evaluate(parse_directive(line), readable, no, "test.top")
        if isinstance(result, bool):
            readable = result
    return readable


# === Tokenisation ===


@pytest.mark.parametrize(
    "line, expected",
    [
        ("#define POSRES", Define("POSRES", True)),
        ("#define POSRES_FC 1000", Define("POSRES_FC", 1000)),
        ("#define  SCALE\t0.5", Define("SCALE", 0.5)),
        ("#define gb_1 0.1000  1.5700e+07", Define("gb_1", "0.1000  1.5700e+07")),
        ("#ifdef FLEXIBLE", IfDef("FLEXIBLE")),
        ("  #ifdef POSRES ; restrain", IfDef("POSRES")),
        ("#ifndef FLEXIBLE", IfNDef("FLEXIBLE")),
        ("#else", Else()),
        ("#endif", EndIf()),
        ("# endif", EndIf()),
        ('#include "amber99.ff/forcefield.itp"', Include("amber99.ff/forcefield.itp")),
        ("#undef POSRES", Unknown("undef", "POSRES")),
        ("#define", Unknown("define", "")),
    ],
)
def test_parse_directive(line: str, expected: object) -> None:
    assert parse_directive(line) == expected


def test_parse_directive_rejects_content() -> None:
    with pytest.raises(InternalCodeError):
        parse_directive("1 C")


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, True),
        ("12", 12),
        ("-3", -3),
        ("1e3", 1000.0),
        ("0.25", 0.25),
        ("inf", "inf"),
        ("nan", "nan"),
        ("value", "value"),
    ],
)
def test_coerce_define_value(raw: str | None, expected: object) -> None:
    value = coerce_define_value(raw)
    assert value == expected
    assert type(value) is type(expected)


# === Defines ===


def test_define_recorded_when_readable(preprocessor: ConditionalPreprocessor) -> None:
    assert preprocessor.evaluate(Define("POSRES"), True) is SKIP
    assert preprocessor.is_defined("POSRES")


def test_define_ignored_when_not_readable(preprocessor: ConditionalPreprocessor) -> None:
    assert preprocessor.evaluate(Define("POSRES"), False) is SKIP
    assert not preprocessor.is_defined("POSRES")


def test_include_and_unknown_are_not_directives(preprocessor: ConditionalPreprocessor) -> None:
    assert preprocessor.evaluate(Include("a.itp"), True) is NOT_A_DIRECTIVE
    assert preprocessor.evaluate(Unknown("error", "boom"), True) is NOT_A_DIRECTIVE
    assert preprocessor.stack == []


# === Conditionals ===


def test_ifdef_defined(preprocessor: ConditionalPreprocessor) -> None:
    assert run(preprocessor, ["#ifdef FLEXIBLE"]) is True
    assert preprocessor.stack == [ConditionalFrame.VALIDATED]


def test_ifdef_undefined(preprocessor: ConditionalPreprocessor) -> None:
    assert run(preprocessor, ["#ifdef POSRES"]) is False
    assert preprocessor.stack == [ConditionalFrame.UNVALIDATED]


def test_ifndef(preprocessor: ConditionalPreprocessor) -> None:
    assert run(preprocessor, ["#ifndef FLEXIBLE"]) is False
    assert run(preprocessor, ["#endif", "#ifndef POSRES"]) is True


def test_else_flips_both_ways(preprocessor: ConditionalPreprocessor) -> None:
    assert run(preprocessor, ["#ifdef FLEXIBLE", "#else"]) is False
    assert preprocessor.stack == [ConditionalFrame.ENTERED_ELSE]
    assert run(preprocessor, ["#endif", "#ifdef POSRES", "#else"]) is True


def test_balanced_block_empties_stack(preprocessor: ConditionalPreprocessor) -> None:
    lines = ["#ifdef FLEXIBLE", "#ifndef POSRES", "#else", "#endif", "#else", "#endif"]
    assert run(preprocessor, lines) is True
    assert preprocessor.depth == 0


def test_placeholder_inside_skipped_block(preprocessor: ConditionalPreprocessor) -> None:
    """Conditionals nested in a skipped branch only keep #endif balanced."""
    assert run(preprocessor, ["#ifdef POSRES", "#ifdef FLEXIBLE"]) is False
    assert preprocessor.stack == [ConditionalFrame.UNVALIDATED, ConditionalFrame.NOT_READABLE]

    # #else of a placeholder changes nothing
    assert run(preprocessor, ["#else"], readable=False) is False
    assert preprocessor.stack[-1] is ConditionalFrame.NOT_READABLE

    assert run(preprocessor, ["#endif"], readable=False) is False
    assert run(preprocessor, ["#endif"], readable=False) is True
    assert preprocessor.depth == 0


def test_else_of_outer_after_skipped_nested(preprocessor: ConditionalPreprocessor) -> None:
    lines = ["#ifdef POSRES", "#ifdef FLEXIBLE", "#endif", "#else"]
    assert run(preprocessor, lines) is True


def test_endif_restores_readability_without_looking_below(preprocessor: ConditionalPreprocessor) -> None:
    """#endif of a non-placeholder frame always makes the input readable again."""
    preprocessor.stack.append(ConditionalFrame.UNVALIDATED)
    preprocessor.stack.append(ConditionalFrame.VALIDATED)
    assert run(preprocessor, ["#endif"], readable=False) is True
    assert preprocessor.stack == [ConditionalFrame.UNVALIDATED]


# === Errors ===


def test_else_on_empty_stack(preprocessor: ConditionalPreprocessor) -> None:
    with pytest.raises(PreprocessorError, match="Unexpected else statement") as exc_info:
        run(preprocessor, ["#else"])
    assert exc_info.value.line_no == 1
    assert exc_info.value.filename == "test.top"


def test_endif_on_empty_stack(preprocessor: ConditionalPreprocessor) -> None:
    with pytest.raises(PreprocessorError, match=r"Unexpected endif statement \(line 1 in file test.top\)"):
        run(preprocessor, ["#endif"])


def test_second_else(preprocessor: ConditionalPreprocessor) -> None:
    with pytest.raises(PreprocessorError, match="line 3"):
        run(preprocessor, ["#ifdef FLEXIBLE", "#else", "#else"])


def test_unhandled_variant(preprocessor: ConditionalPreprocessor) -> None:
    with pytest.raises(InternalCodeError):
        preprocessor.evaluate("#ifdef", True)  # type: ignore[arg-type]
