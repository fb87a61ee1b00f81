"""Core schema tag resolution tables for YAML 1.1 and 1.2.

Each table is an ordered tuple of resolvers; the first resolver whose test
accepts a string wins. The order is part of the contract: in 1.1, legacy
octal must be tried before decimal integers, and every table ends with the
string resolver, which accepts anything.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping as MappingABC
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Final

from .types import Mapping, Sequence, YAMLVersion

NULL_TAG: Final[str] = "tag:yaml.org,2002:null"
BOOL_TAG: Final[str] = "tag:yaml.org,2002:bool"
INT_TAG: Final[str] = "tag:yaml.org,2002:int"
FLOAT_TAG: Final[str] = "tag:yaml.org,2002:float"
STR_TAG: Final[str] = "tag:yaml.org,2002:str"
OMAP_TAG: Final[str] = "tag:yaml.org,2002:omap"
SET_TAG: Final[str] = "tag:yaml.org,2002:set"

CORE_TAG_PREFIX: Final[str] = "tag:yaml.org,2002:"


@dataclass(frozen=True, slots=True)
class TagResolver:
    """Resolve a scalar string for one tag."""

    tag: str
    test: Callable[[str], bool]
    resolve: Callable[[str], Any]


@dataclass(frozen=True, slots=True)
class TagNodeResolver:
    """Resolve a collection node for one tag.

    `resolve_node` receives the node and the static value function used to
    resolve its children.
    """

    tag: str
    test_node: Callable[[Mapping | Sequence], bool]
    resolve_node: Callable[[Mapping | Sequence, Callable[[Any], Any]], Any]


def _matcher(*patterns: str) -> Callable[[str], bool]:
    compiled = [re.compile(p, re.ASCII) for p in patterns]

    def test(value: str) -> bool:
        return any(p.fullmatch(value) for p in compiled)

    return test


def is_null(value: str) -> bool:
    return value in ("", "~", "null", "Null", "NULL")


def is_true(value: str) -> bool:
    return value in ("true", "True", "TRUE")


def is_false(value: str) -> bool:
    return value in ("false", "False", "FALSE")


_is_true_1_1 = _matcher(r"y|Y|yes|Yes|YES|true|True|TRUE|on|On|ON")
_is_false_1_1 = _matcher(r"n|N|no|No|NO|false|False|FALSE|off|Off|OFF")


def _resolve_infinity(value: str) -> float:
    return -math.inf if value.startswith("-") else math.inf


def _split_sign(value: str) -> tuple[int, str]:
    """Strip underscores and a leading sign."""
    value = value.replace("_", "")
    if value[:1] in ("-", "+"):
        return (-1 if value[0] == "-" else 1), value[1:]
    return 1, value


def _resolve_int(skip: int, base: int) -> Callable[[str], int]:
    """Build a resolver that drops a `skip`-character prefix after the sign."""

    def resolve(value: str) -> int:
        sign, digits = _split_sign(value)
        digits = digits[skip:]
        return sign * int(digits, base) if digits else 0

    return resolve


def _resolve_float_1_1(value: str) -> float:
    return float(value.replace("_", ""))


def _has_digit(value: str) -> bool:
    return any(ch.isdigit() for ch in value)


_float_1_1_pattern = _matcher(
    r"[-+]?(\d[\d_]*)?\.[\d_]*([eE][-+]\d+)?",
    # the previous pattern cannot handle an exponent without a dot
    r"[-+]?(\d[\d_]*)?([eE][-+]\d+)?",
)


def _is_float_1_1(value: str) -> bool:
    return _float_1_1_pattern(value) and _has_digit(value.split("e")[0].split("E")[0])


def _resolve_base60(value: str) -> float:
    """Resolve a sexagesimal number such as `190:20:30`."""
    sign, digits = _split_sign(value)
    result: float = 0
    for segment in digits.split(":"):
        result = result * 60 + (float(segment) if "." in segment else int(segment))
    return sign * result


NULL: Final[TagResolver] = TagResolver(NULL_TAG, is_null, lambda _: None)
TRUE: Final[TagResolver] = TagResolver(BOOL_TAG, is_true, lambda _: True)
FALSE: Final[TagResolver] = TagResolver(BOOL_TAG, is_false, lambda _: False)
INT: Final[TagResolver] = TagResolver(INT_TAG, _matcher(r"[+-]?\d+"), lambda s: int(s, 10))
INT_BASE8: Final[TagResolver] = TagResolver(
    INT_TAG, _matcher(r"0o[0-7]+"), lambda s: int(s[2:], 8)
)
INT_BASE16: Final[TagResolver] = TagResolver(
    INT_TAG, _matcher(r"0x[\dA-Fa-f]+"), lambda s: int(s[2:], 16)
)
FLOAT: Final[TagResolver] = TagResolver(
    FLOAT_TAG,
    _matcher(r"[+-]?(?:\.\d+|\d+(?:\.\d*)?)(?:[Ee][+-]?\d+)?"),
    float,
)
INFINITY: Final[TagResolver] = TagResolver(
    FLOAT_TAG, _matcher(r"[+-]?(?:\.inf|\.Inf|\.INF)"), _resolve_infinity
)
NAN: Final[TagResolver] = TagResolver(
    FLOAT_TAG, _matcher(r"\.NaN|\.nan|\.NAN"), lambda _: math.nan
)
STR: Final[TagResolver] = TagResolver(STR_TAG, lambda _: True, lambda s: s)

TRUE_1_1: Final[TagResolver] = TagResolver(BOOL_TAG, _is_true_1_1, lambda _: True)
FALSE_1_1: Final[TagResolver] = TagResolver(BOOL_TAG, _is_false_1_1, lambda _: False)
INT_1_1: Final[TagResolver] = TagResolver(
    INT_TAG, _matcher(r"[-+]?(0|[1-9][\d_]*)"), _resolve_int(0, 10)
)
INT_BASE2_1_1: Final[TagResolver] = TagResolver(
    INT_TAG, _matcher(r"[-+]?0b[0-1_]+"), _resolve_int(2, 2)
)
INT_BASE8_1_1: Final[TagResolver] = TagResolver(
    INT_TAG, _matcher(r"[-+]?0[0-7_]+"), _resolve_int(1, 8)
)
INT_BASE16_1_1: Final[TagResolver] = TagResolver(
    INT_TAG, _matcher(r"[-+]?0x[\da-fA-F_]+"), _resolve_int(2, 16)
)
INT_BASE60_1_1: Final[TagResolver] = TagResolver(
    INT_TAG, _matcher(r"[-+]?[1-9][\d_]*(:[0-5]?\d)+"), _resolve_base60
)
FLOAT_BASE60_1_1: Final[TagResolver] = TagResolver(
    FLOAT_TAG, _matcher(r"[-+]?\d[\d_]*(:[0-5]?\d)+\.[\d_]*"), _resolve_base60
)
FLOAT_1_1: Final[TagResolver] = TagResolver(FLOAT_TAG, _is_float_1_1, _resolve_float_1_1)


def _is_omap(node: Mapping | Sequence) -> bool:
    return isinstance(node, Sequence) and all(
        isinstance(entry, Mapping) and len(entry.pairs) == 1 for entry in node.entries
    )


def _resolve_omap(node: Mapping | Sequence, get_value: Callable[[Any], Any]) -> dict[Any, Any]:
    result: dict[Any, Any] = {}
    for entry in node.entries:  # type: ignore[union-attr]
        for pair in entry.pairs:
            key = None if pair.key is None else get_value(pair.key)
            result[key] = None if pair.value is None else get_value(pair.value)
    return result


def _is_set(node: Mapping | Sequence) -> bool:
    return isinstance(node, Mapping) and all(
        pair.key is not None and pair.value is None for pair in node.pairs
    )


def _resolve_set(node: Mapping | Sequence, get_value: Callable[[Any], Any]) -> list[Any]:
    return [get_value(pair.key) for pair in node.pairs]  # type: ignore[union-attr]


OMAP: Final[TagNodeResolver] = TagNodeResolver(OMAP_TAG, _is_omap, _resolve_omap)
SET: Final[TagNodeResolver] = TagNodeResolver(SET_TAG, _is_set, _resolve_set)

TAG_RESOLVERS_1_2: Final[tuple[TagResolver, ...]] = (
    NULL,
    TRUE,
    FALSE,
    INT,
    INT_BASE8,
    INT_BASE16,
    FLOAT,
    INFINITY,
    NAN,
    STR,
)

TAG_RESOLVERS_1_1: Final[tuple[TagResolver, ...]] = (
    NULL,
    TRUE_1_1,
    FALSE_1_1,
    INT_BASE8_1_1,
    INT_1_1,
    INT_BASE2_1_1,
    INT_BASE16_1_1,
    INT_BASE60_1_1,
    FLOAT_BASE60_1_1,
    FLOAT_1_1,
    INFINITY,
    NAN,
    STR,
)

TAG_RESOLVERS: Final[MappingABC[YAMLVersion, tuple[TagResolver, ...]]] = MappingProxyType(
    {"next": TAG_RESOLVERS_1_2, "1.2": TAG_RESOLVERS_1_2, "1.1": TAG_RESOLVERS_1_1}
)

TAG_NODE_RESOLVERS: Final[MappingABC[YAMLVersion, tuple[TagNodeResolver, ...]]] = (
    MappingProxyType({"next": (OMAP, SET), "1.2": (OMAP, SET), "1.1": (OMAP, SET)})
)


def resolve_plain(value: str, version: YAMLVersion) -> Any:
    """Resolve a plain scalar string with the first matching core schema rule."""
    for resolver in TAG_RESOLVERS[version]:
        if resolver.test(value):
            return resolver.resolve(value)
    return value
