"""Child field names per node type, and a generic tree walker."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import Final

from .types import Node

VISITOR_KEYS: Final[Mapping[str, tuple[str, ...]]] = MappingProxyType(
    {
        "Program": ("body",),
        "Document": ("directives", "content"),
        "Directive": (),
        "Mapping": ("pairs",),
        "Pair": ("key", "value"),
        "Sequence": ("entries",),
        "WithMeta": ("anchor", "tag", "value"),
        "Scalar": (),
        "Alias": (),
        "Anchor": (),
        "Tag": (),
    }
)


def get_keys(node: Node) -> tuple[str, ...]:
    """Return the child field names of a node."""
    return VISITOR_KEYS.get(type(node).__name__, ())


def iter_child_nodes(node: Node) -> Iterator[Node]:
    """Yield the direct children of a node in field order, skipping empty slots."""
    for key in get_keys(node):
        child = getattr(node, key)
        if isinstance(child, list):
            yield from (item for item in child if item is not None)
        elif child is not None:
            yield child


def traverse_nodes(
    node: Node,
    enter: Callable[[Node, Node | None], None],
    leave: Callable[[Node, Node | None], None] | None = None,
) -> None:
    """Walk a tree depth-first, calling `enter` before and `leave` after children."""
    _traverse(node, None, enter, leave)


def _traverse(
    node: Node,
    parent: Node | None,
    enter: Callable[[Node, Node | None], None],
    leave: Callable[[Node, Node | None], None] | None,
) -> None:
    enter(node, parent)
    for child in iter_child_nodes(node):
        _traverse(child, node, enter, leave)
    if leave is not None:
        leave(node, parent)
