"""Type definitions for the YAML AST."""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, TypeAlias


YAMLVersion: TypeAlias = Literal["1.1", "1.2", "next"]


@dataclass(frozen=True, slots=True)
class Range:
    """A half-open character range in the normalized source."""

    start: int
    end: int


@dataclass(frozen=True, slots=True)
class Position:
    """A 1-based line and 0-based column."""

    line: int
    column: int


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Start and end positions of a range."""

    start: Position
    end: Position


class ParseError(Exception):
    """A parse error with location information."""

    def __init__(self, message: str, offset: int, line: int, column: int) -> None:
        self.message = message
        self.offset = offset
        self.line = line
        self.column = column
        super().__init__(f"parse error at {line}:{column}: {message}")

    def to_dict(self) -> dict[str, Any]:
        """Return the error as a plain value."""
        return {
            "message": self.message,
            "offset": self.offset,
            "line": self.line,
            "column": self.column,
        }


class StructuralMismatchError(ParseError):
    """The composed node tree and the token stream disagree."""


class TokenType(Enum):
    """Token types."""

    DIRECTIVE = "Directive"
    MARKER = "Marker"
    PUNCTUATOR = "Punctuator"
    IDENTIFIER = "Identifier"
    STRING = "String"
    BOOLEAN = "Boolean"
    NUMERIC = "Numeric"
    NULL = "Null"
    BLOCK_LITERAL = "BlockLiteral"
    BLOCK_FOLDED = "BlockFolded"


class CommentType(Enum):
    """Comment types."""

    LINE = "Line"


class ScalarStyle(Enum):
    """The presentation style of a scalar."""

    PLAIN = "plain"
    DOUBLE_QUOTED = "double-quoted"
    SINGLE_QUOTED = "single-quoted"
    LITERAL = "literal"
    FOLDED = "folded"


class CollectionStyle(Enum):
    """The presentation style of a mapping or sequence."""

    BLOCK = "block"
    FLOW = "flow"


class Chomping(Enum):
    """Block scalar trailing line break handling."""

    CLIP = "clip"
    KEEP = "keep"
    STRIP = "strip"


@dataclass(slots=True)
class Token:
    """A lexical token."""

    type: TokenType
    value: str
    range: Range
    loc: SourceLocation


@dataclass(slots=True)
class Comment:
    """A line comment, without its leading `#`."""

    type: CommentType
    value: str
    range: Range
    loc: SourceLocation


@dataclass(slots=True, eq=False, weakref_slot=True)
class BaseNode:
    """Common fields of every AST node."""

    range: Range
    loc: SourceLocation
    _parent: weakref.ReferenceType[BaseNode] | None = field(
        default=None, init=False, repr=False
    )

    @property
    def parent(self) -> Node | None:
        """The owning node, if it is still alive."""
        if self._parent is None:
            return None
        return self._parent()  # type: ignore[return-value]

    @parent.setter
    def parent(self, node: Node | None) -> None:
        self._parent = None if node is None else weakref.ref(node)


@dataclass(slots=True, eq=False)
class Anchor(BaseNode):
    """An anchor declaration (`&name`)."""

    name: str


@dataclass(slots=True, eq=False)
class Tag(BaseNode):
    """A tag annotation, resolved to its full tag URI."""

    tag: str


@dataclass(slots=True, eq=False)
class Scalar(BaseNode):
    """A scalar value."""

    style: ScalarStyle
    raw: str
    str_value: str
    value: Any = None
    chomping: Chomping | None = None
    indent: int | None = None


@dataclass(slots=True, eq=False)
class Alias(BaseNode):
    """A reference to an anchored node (`*name`)."""

    name: str


@dataclass(slots=True, eq=False)
class Pair(BaseNode):
    """A key/value pair. Either side may be empty."""

    key: Content | None
    value: Content | None


@dataclass(slots=True, eq=False)
class Mapping(BaseNode):
    """A block or flow mapping."""

    style: CollectionStyle
    pairs: list[Pair]


@dataclass(slots=True, eq=False)
class Sequence(BaseNode):
    """A block or flow sequence. Empty block entries are None."""

    style: CollectionStyle
    entries: list[Content | None]


@dataclass(slots=True, eq=False)
class WithMeta(BaseNode):
    """A node carrying an anchor and/or a tag."""

    anchor: Anchor | None
    tag: Tag | None
    value: Content | None


Content: TypeAlias = Mapping | Sequence | Scalar | Alias | WithMeta


@dataclass(slots=True, eq=False)
class Directive(BaseNode):
    """A `%` directive line."""

    value: str
    kind: Literal["YAML", "TAG"] | None = None
    version: str | None = None
    handle: str | None = None
    prefix: str | None = None


@dataclass(slots=True, eq=False)
class Document(BaseNode):
    """A single YAML document."""

    directives: list[Directive]
    content: Content | None
    anchors: dict[str, list[Anchor]]
    version: YAMLVersion


@dataclass(slots=True, eq=False)
class Program(BaseNode):
    """The root of a parsed stream."""

    body: list[Document]
    comments: list[Comment]
    tokens: list[Token]


Node: TypeAlias = Program | Document | Directive | Content | Pair | Anchor | Tag
