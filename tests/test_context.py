"""Tests for the conversion context and parser options."""

from __future__ import annotations

import logging

import pytest

from yamlast import ParserOptions, Position, Range, TokenType
from yamlast.context import Context, LinesAndColumns, skip_spaces


@pytest.mark.parametrize(
    ("index", "line", "column"),
    [(0, 1, 0), (2, 1, 2), (3, 2, 0), (5, 2, 2), (6, 3, 0)],
)
def test_loc_from_index(index: int, line: int, column: int):
    locs = LinesAndColumns("ab\ncd\n")
    assert locs.get_loc_from_index(index) == Position(line, column)
    assert locs.get_index_from_loc(Position(line, column)) == index


def test_line_breaks_are_normalized():
    ctx = Context("a\r\nb\rc\n")
    assert ctx.code == "a\nb\nc\n"
    assert ctx.get_loc_from_index(4) == Position(3, 0)


def test_loc_lookups_are_memoized():
    ctx = Context("a: 1\nb: 2\n")
    assert ctx.get_loc_from_index(5) is ctx.get_loc_from_index(5)


def test_convert_location():
    ctx = Context("a: 1\nb: 2\n")
    span, loc = ctx.get_convert_location(5, 9)
    assert span == Range(5, 9)
    assert loc.start == Position(2, 0)
    assert loc.end == Position(2, 4)


def test_add_token_slices_source():
    ctx = Context("key: value")
    token = ctx.add_token(TokenType.IDENTIFIER, 5, 10)
    assert token.value == "value"
    assert ctx.tokens == [token]


def test_last_skip_spaces():
    ctx = Context("abc  \n\n")
    assert ctx.last_skip_spaces(0, 7) == 3
    assert ctx.last_skip_spaces(4, 7) == 4


@pytest.mark.parametrize(
    ("code", "index", "expected"),
    [("  a", 0, 2), ("\ufeffa", 0, 1), ("a", 0, 0), ("  ", 0, 2), ("a \n", 1, 3)],
)
def test_skip_spaces(code: str, index: int, expected: int):
    assert skip_spaces(code, index) == expected


def test_errors_carry_positions():
    ctx = Context("a: 1\nb: 2\n")
    error = ctx.error("boom", 7)
    assert (error.offset, error.line, error.column) == (7, 2, 2)
    unexpected = ctx.unexpected_token_error("]", 3)
    assert unexpected.message == "Unexpected token: ']'"
    mismatch = ctx.mismatch_error("unknown error: CST is mismatched", 0)
    assert (mismatch.line, mismatch.column) == (1, 0)


def test_options_defaults():
    options = ParserOptions.from_mapping(None)
    assert options == ParserOptions()
    assert options.resolve_version(None) == "1.2"


@pytest.mark.parametrize(
    "mapping",
    [
        {"defaultYAMLVersion": "1.1", "uniqueKeysEnforced": True, "strictMode": True},
        {"default_yaml_version": "1.1", "unique_keys": True, "strict": True},
        {"defaultVersion": 1.1, "unique_keys": True, "strict": True},
    ],
)
def test_options_from_mapping(mapping: dict):
    options = ParserOptions.from_mapping(mapping)
    assert options == ParserOptions(default_yaml_version="1.1", unique_keys=True, strict=True)


@pytest.mark.parametrize(
    ("default", "directive", "expected"),
    [
        (None, None, "1.2"),
        ("1.1", None, "1.1"),
        ("1.1", "1.2", "1.2"),
        (None, "1.1", "1.1"),
        (None, "1.3", "next"),
        ("2.0", None, "next"),
        ("next", None, "next"),
    ],
)
def test_resolve_version(default, directive, expected):
    assert ParserOptions(default_yaml_version=default).resolve_version(directive) == expected


def test_unknown_option_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="yamlast.options"):
        ParserOptions.from_mapping({"bogus": 1})
    assert "ignoring unknown parser option 'bogus'" in caplog.text
