"""Tests for parse errors and structural mismatch detection."""

from __future__ import annotations

import pytest

from yamlast import ParseError, StructuralMismatchError, parse, parse_yaml
from yamlast.context import Context
from yamlast.convert import convert_root
from yamlast.cst import CstStream, parse_all_docs_to_cst


def parse_error(source: str, options=None) -> ParseError:
    """Parse a source that must fail and return the error."""
    with pytest.raises(ParseError) as info:
        parse(source, options)
    return info.value


def test_mapping_value_not_allowed():
    error = parse_error("a: b: c")
    assert error.message == "mapping values are not allowed here"
    assert (error.offset, error.line, error.column) == (4, 1, 4)
    assert str(error) == "parse error at 1:4: mapping values are not allowed here"


def test_unclosed_flow_sequence():
    error = parse_error("[1, 2")
    assert "flow sequence" in error.message
    assert error.line == 1


def test_undefined_alias():
    error = parse_error("a: *x\n")
    assert error.message == "found undefined alias 'x'"
    assert (error.offset, error.line, error.column) == (3, 1, 3)


def test_alias_before_anchor_is_undefined():
    error = parse_error("a: *x\nb: &x 1\n")
    assert "undefined alias" in error.message


def test_non_printable_character():
    error = parse_error("a: \x01")
    assert error.message == "unacceptable character #x0001: special characters are not allowed"
    assert error.offset == 3


def test_error_position_on_later_line():
    error = parse_error("a: 1\nb: c: d\n")
    assert error.line == 2
    assert error.column == 4
    assert error.offset == 9


def test_duplicate_keys_allowed_by_default():
    program = parse_yaml("a: 1\na: 2\n")
    assert len(program.body[0].content.pairs) == 2


@pytest.mark.parametrize(
    ("source", "offset"),
    [
        ("a: 1\na: 2\n", 5),
        ("{a: 1, a: 2}", 7),
        ("1: x\n1: y\n", 5),
        ("? \n: x\n? \n: y\n", 7),
    ],
)
def test_unique_keys_enforced(source: str, offset: int):
    error = parse_error(source, {"uniqueKeysEnforced": True})
    assert error.message == "Map keys must be unique"
    assert error.offset == offset


def test_unique_keys_distinguish_types():
    program = parse_yaml("1: x\n'1': y\n", {"unique_keys": True})
    assert len(program.body[0].content.pairs) == 2


def test_unique_keys_ignore_collection_keys():
    program = parse_yaml("? [a]\n: 1\n? [a]\n: 2\n", {"unique_keys": True})
    assert len(program.body[0].content.pairs) == 2


def test_strict_mode_rejects_unsupported_version():
    error = parse_error("%YAML 1.3\n---\na: 1\n", {"strictMode": True})
    assert error.message == "Unsupported YAML version: 1.3"
    assert (error.offset, error.line, error.column) == (0, 1, 0)


def test_strict_mode_accepts_supported_version():
    program = parse_yaml("%YAML 1.1\n---\na: 1\n", {"strict": True})
    assert program.body[0].version == "1.1"


def test_error_to_dict():
    error = parse_error("a: *x\n")
    assert error.to_dict() == {
        "message": "found undefined alias 'x'",
        "offset": 3,
        "line": 1,
        "column": 3,
    }


def test_mismatched_node_kind():
    ctx = Context("a: 1")
    mapping_stream = parse_all_docs_to_cst(ctx)
    sequence_stream = parse_all_docs_to_cst(Context("- 1"))
    stream = CstStream(tokens=mapping_stream.tokens, documents=sequence_stream.documents)
    with pytest.raises(StructuralMismatchError) as info:
        convert_root(stream, ctx)
    assert info.value.message == "unknown error: AST is not mapping (sequence)"
    assert info.value.offset == 0


def test_missing_composed_document():
    ctx = Context("a: 1")
    stream = parse_all_docs_to_cst(ctx)
    with pytest.raises(StructuralMismatchError) as info:
        convert_root(CstStream(tokens=stream.tokens, documents=[]), ctx)
    assert info.value.message == "unknown error: CST is mismatched"


def test_extra_composed_document():
    ctx = Context("a: 1")
    stream = parse_all_docs_to_cst(ctx)
    documents = stream.documents * 2
    with pytest.raises(StructuralMismatchError):
        convert_root(CstStream(tokens=stream.tokens, documents=documents), ctx)


def test_mismatch_is_a_parse_error():
    assert issubclass(StructuralMismatchError, ParseError)
