"""Tests for static value computation."""

from __future__ import annotations

import math

import pytest

from yamlast import (
    find_anchor,
    get_static_yaml_value,
    get_yaml_version,
    parse,
    parse_yaml,
)
from yamlast.tags import resolve_plain


def value_of(source: str, options=None):
    """Parse a source and return its static value."""
    return get_static_yaml_value(parse_yaml(source, options))


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("", None),
        ("a: 1\nb: [x, y]\n", {"a": 1, "b": ["x", "y"]}),
        ("- 1\n- 2.5\n- true\n- null\n- text\n", [1, 2.5, True, None, "text"]),
        ("a: 1\na: 2\n", {"a": 2}),
        ("true: 1\nnull: 2\n", {"true": 1, "null": 2}),
        ("1: one\n", {1: "one"}),
        ("? [a, b]\n: 1\n", {'["a", "b"]': 1}),
        ("? {x: 1}\n: 1\n", {'{"x": 1}': 1}),
        ("? a\n", {"a": None}),
        ("--- 1\n--- 2\n...\n", [1, 2]),
        ("'quoted: text'", "quoted: text"),
        ('"tab\\tchar"', "tab\tchar"),
        ("a: |\n  line\n", {"a": "line\n"}),
    ],
)
def test_static_value(source: str, expected):
    assert value_of(source) == expected


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("!!str 123", "123"),
        ("!!int '12'", 12),
        ('!!int "0x1F"', 31),
        ("!!float 1", 1.0),
        ("!!null ''", None),
        ("!!null", None),
        ("!!str", ""),
        ("!!bool yes", True),
        ("!custom value", "value"),
        ("! 12", "12"),
        ("!!str |\n  text\n", "text\n"),
    ],
)
def test_tagged_scalars(source: str, expected):
    value = value_of(source)
    assert value == expected
    assert type(value) is type(expected)


def test_tagged_scalar_in_1_1():
    assert value_of("!!int 010", {"defaultYAMLVersion": "1.1"}) == 8
    assert value_of("!!bool on", {"defaultYAMLVersion": "1.1"}) is True


def test_omap():
    value = value_of("!!omap\n- b: 1\n- a: 2\n")
    assert value == {"b": 1, "a": 2}
    assert list(value) == ["b", "a"]


def test_omap_with_non_pair_entries_is_a_sequence():
    assert value_of("!!omap\n- a\n- b\n") == ["a", "b"]


def test_set():
    assert value_of("!!set\n? a\n? b\n") == ["a", "b"]


def test_set_with_values_is_a_mapping():
    assert value_of("!!set\na: 1\n") == {"a": 1}


def test_alias_resolves_to_anchored_value():
    result = parse("a: &x [1, 2]\nb: *x\n")
    assert get_static_yaml_value(result.ast) == {"a": [1, 2], "b": [1, 2]}


def test_alias_uses_nearest_preceding_anchor():
    result = parse("a: &x 1\nb: *x\nc: &x 2\nd: *x\n")
    assert get_static_yaml_value(result.ast) == {"a": 1, "b": 1, "c": 2, "d": 2}


def test_find_anchor():
    result = parse("a: &x 1\nb: &x 2\nc: *x\n")
    pairs = result.ast.body[0].content.pairs
    alias = pairs[2].value
    anchor = find_anchor(alias)
    assert anchor is pairs[1].value.anchor
    assert anchor.range.start == 11


def test_aliases_do_not_cross_documents():
    result = parse("--- &x 1\n--- &y 2\n")
    documents = result.ast.body
    assert list(documents[0].anchors) == ["x"]
    assert list(documents[1].anchors) == ["y"]


def test_get_yaml_version():
    result = parse("%YAML 1.1\n---\na: 1\n--- b\n")
    first, second = result.ast.body
    assert get_yaml_version(first.content.pairs[0].value) == "1.1"
    assert get_yaml_version(second.content) == "1.2"


def test_directive_anchor_and_tag_have_no_value():
    result = parse("%YAML 1.2\n--- &a !!str x\n")
    document = result.ast.body[0]
    assert get_static_yaml_value(document.directives[0]) is None
    assert get_static_yaml_value(document.content.anchor) is None
    assert get_static_yaml_value(document.content.tag) is None
    assert get_static_yaml_value(document.content) == "x"


def test_unknown_object_raises():
    with pytest.raises(TypeError):
        get_static_yaml_value(object())


@pytest.mark.parametrize("version", ["1.1", "1.2"])
@pytest.mark.parametrize(
    "text",
    [
        "~",
        "null",
        "true",
        "yes",
        "Off",
        "0",
        "010",
        "0o17",
        "0x1F",
        "0x_1F",
        "0b1010",
        "1_000",
        "-12",
        "1.5",
        "1e3",
        "1.5e+3",
        ".inf",
        "-.Inf",
        "1:30",
        "190:20:30.15",
        "text",
    ],
)
def test_plain_scalar_values_follow_resolution(version: str, text: str):
    value = value_of(f"v: {text}\n", {"defaultYAMLVersion": version})["v"]
    expected = resolve_plain(text, version)
    assert value == expected
    assert type(value) is type(expected)


def test_nan_value():
    assert math.isnan(value_of("v: .nan\n")["v"])


def is_plain(value) -> bool:
    """Check if a value is built only from JSON-like types."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return True
    if isinstance(value, list):
        return all(is_plain(item) for item in value)
    if isinstance(value, dict):
        return all(is_plain(k) and is_plain(v) for k, v in value.items())
    return False


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("a: !!int abc\n", {"a": "abc"}),
        ("a: !!int\n", {"a": None}),
        ("a: !!float x\n", {"a": "x"}),
        ("a: !!bool maybe\n", {"a": "maybe"}),
        ("a: !!int 'abc'\n", {"a": "abc"}),
        ("a: !!timestamp nope\n", {"a": "nope"}),
        ("a: !!binary aGVsbG8=\n", {"a": "aGVsbG8="}),
        ("a: !!timestamp 2001-12-14\n", {"a": "2001-12-14"}),
        ("a: !foo bar\n", {"a": "bar"}),
    ],
)
def test_unconstructible_tags_keep_untagged_value(source: str, expected):
    value = value_of(source)
    assert value == expected
    assert is_plain(value)
