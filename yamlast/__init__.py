"""YAML to AST converter for static analysis tools."""

from .options import ParserOptions
from .parser import ParseResult, parse, parse_yaml
from .tags import TAG_NODE_RESOLVERS, TAG_RESOLVERS, TagNodeResolver, TagResolver
from .types import (
    Alias,
    Anchor,
    Chomping,
    CollectionStyle,
    Comment,
    CommentType,
    Content,
    Directive,
    Document,
    Mapping,
    Node,
    Pair,
    ParseError,
    Position,
    Program,
    Range,
    Scalar,
    ScalarStyle,
    Sequence,
    SourceLocation,
    StructuralMismatchError,
    Tag,
    Token,
    TokenType,
    WithMeta,
    YAMLVersion,
)
from .utils import find_anchor, get_static_yaml_value, get_yaml_version
from .visitor_keys import VISITOR_KEYS, get_keys, iter_child_nodes, traverse_nodes

__all__ = [
    "Alias",
    "Anchor",
    "Chomping",
    "CollectionStyle",
    "Comment",
    "CommentType",
    "Content",
    "Directive",
    "Document",
    "Mapping",
    "Node",
    "Pair",
    "ParseError",
    "ParseResult",
    "ParserOptions",
    "Position",
    "Program",
    "Range",
    "Scalar",
    "ScalarStyle",
    "Sequence",
    "SourceLocation",
    "StructuralMismatchError",
    "TAG_NODE_RESOLVERS",
    "TAG_RESOLVERS",
    "Tag",
    "TagNodeResolver",
    "TagResolver",
    "Token",
    "TokenType",
    "VISITOR_KEYS",
    "WithMeta",
    "YAMLVersion",
    "find_anchor",
    "get_keys",
    "get_static_yaml_value",
    "get_yaml_version",
    "iter_child_nodes",
    "parse",
    "parse_yaml",
    "traverse_nodes",
]
