"""S-expression dump of an AST, for debugging and tests."""

from __future__ import annotations

from .types import (
    Alias,
    Anchor,
    Directive,
    Document,
    Mapping,
    Node,
    Pair,
    ParseError,
    Program,
    Scalar,
    Sequence,
    Tag,
    Token,
    WithMeta,
)


def escape_string(s: str) -> str:
    """Escape a string for sexp output."""
    return (
        s.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def _head(name: str, node: Node) -> str:
    return f"({name} [{node.range.start}, {node.range.end}]"


def format_node(node: Node | None, indent: int = 0) -> str:
    """Format a node (and its children) as sexp."""
    prefix = "  " * indent
    if node is None:
        return f"{prefix}null"

    match node:
        case Scalar():
            return f'{prefix}{_head("scalar", node)} {node.style.value} "{escape_string(node.str_value)}")'
        case Alias():
            return f'{prefix}{_head("alias", node)} "{escape_string(node.name)}")'
        case Anchor():
            return f'{prefix}{_head("anchor", node)} "{escape_string(node.name)}")'
        case Tag():
            return f'{prefix}{_head("tag", node)} "{escape_string(node.tag)}")'
        case Directive():
            return f'{prefix}{_head("directive", node)} "{escape_string(node.value)}")'
        case Mapping():
            head = f"{_head('mapping', node)} {node.style.value}"
            children: list[Node | None] = list(node.pairs)
        case Sequence():
            head = f"{_head('sequence', node)} {node.style.value}"
            children = list(node.entries)
        case Pair():
            head = _head("pair", node)
            children = [node.key, node.value]
        case WithMeta():
            head = _head("meta", node)
            children = [node.anchor, node.tag, node.value]
        case Document():
            head = f"{_head('document', node)} {node.version}"
            children = [*node.directives, node.content]
        case Program():
            head = _head("program", node)
            children = list(node.body)
        case _:
            return f"{prefix}(unknown)"

    if not children:
        return f"{prefix}{head})"
    body = "\n".join(format_node(child, indent + 1) for child in children)
    return f"{prefix}{head}\n{body})"


def format_tokens(tokens: list[Token]) -> str:
    """Format tokens, one per line."""
    return "\n".join(
        f'{token.type.value} [{token.range.start}, {token.range.end}] "{escape_string(token.value)}"'
        for token in tokens
    )


def format_error(error: ParseError) -> str:
    """Format an error as sexp."""
    escaped_msg = escape_string(error.message)
    return f'(error [{error.offset}] {error.line}:{error.column} "{escaped_msg}")'
