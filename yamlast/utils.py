"""Static value resolution for AST nodes."""

from __future__ import annotations

import json
from typing import Any, TypeAlias

import yaml

from .tags import TAG_NODE_RESOLVERS, TAG_RESOLVERS
from .types import (
    Alias,
    Anchor,
    Directive,
    Document,
    Mapping,
    Node,
    Pair,
    Program,
    Scalar,
    ScalarStyle,
    Sequence,
    Tag,
    WithMeta,
    YAMLVersion,
)

YAMLContentValue: TypeAlias = (
    "str | int | float | bool | None | list[YAMLContentValue] | dict[Any, YAMLContentValue]"
)


def get_static_yaml_value(node: Node) -> YAMLContentValue:
    """Compute the plain value of a node."""
    match node:
        case Program(body=body):
            if not body:
                return None
            if len(body) == 1:
                return get_static_yaml_value(body[0])
            return [get_static_yaml_value(document) for document in body]
        case Document(content=content):
            return None if content is None else get_static_yaml_value(content)
        case Mapping(pairs=pairs):
            result: dict[Any, Any] = {}
            for pair in pairs:
                result.update(get_static_yaml_value(pair))
            return result
        case Pair(key=key, value=value):
            key_value = None if key is None else get_static_yaml_value(key)
            return {_to_key(key_value): None if value is None else get_static_yaml_value(value)}
        case Sequence(entries=entries):
            return [None if entry is None else get_static_yaml_value(entry) for entry in entries]
        case Scalar(value=value):
            return value
        case Alias():
            anchor = find_anchor(node)
            if anchor is None or anchor.parent is None:
                return None
            return get_static_yaml_value(anchor.parent)
        case WithMeta():
            return _get_with_meta_value(node)
        case Directive() | Anchor() | Tag():
            return None
        case _:
            raise TypeError(f"cannot compute a static value for {type(node).__name__}")


def find_anchor(node: Alias) -> Anchor | None:
    """Find the nearest anchor declared before an alias in its document."""
    document = _find_document(node)
    if document is None:
        return None
    target: Anchor | None = None
    for anchor in document.anchors.get(node.name, ()):
        if anchor.range.start >= node.range.start:
            continue
        if target is None or target.range.start < anchor.range.start:
            target = anchor
    return target


def get_yaml_version(node: Node) -> YAMLVersion:
    """Return the YAML version of the document containing a node."""
    document = _find_document(node)
    return "1.2" if document is None else document.version


def _find_document(node: Node | None) -> Document | None:
    while node is not None and not isinstance(node, Document):
        node = node.parent
    return node


def _get_with_meta_value(node: WithMeta) -> YAMLContentValue:
    content = node.value
    if node.tag is not None:
        version = get_yaml_version(node)
        match content:
            case None:
                return get_tagged_value(node.tag, "", "", version)
            case Scalar(style=ScalarStyle.PLAIN):
                return get_tagged_value(
                    node.tag, content.str_value, content.str_value, version, default=content.value
                )
            case Scalar(style=ScalarStyle.DOUBLE_QUOTED | ScalarStyle.SINGLE_QUOTED):
                return get_tagged_value(
                    node.tag, content.raw, content.str_value, version, default=content.value
                )
            case Mapping() | Sequence():
                for resolver in TAG_NODE_RESOLVERS[version]:
                    if resolver.tag == node.tag.tag and resolver.test_node(content):
                        return resolver.resolve_node(content, get_static_yaml_value)
    if content is None:
        return None
    return get_static_yaml_value(content)


def get_tagged_value(
    tag: Tag, text: str, str_value: str, version: YAMLVersion, default: Any = None
) -> Any:
    """Resolve a tagged scalar.

    The version's tag table is tried first. Other tags are interpreted by
    PyYAML's safe loader. A tag it cannot construct, or one that builds
    something other than a plain value (bytes, dates), yields `default`.
    """
    for resolver in TAG_RESOLVERS[version]:
        if resolver.tag == tag.tag and resolver.test(str_value):
            return resolver.resolve(str_value)
    tag_text = tag.tag if tag.tag.startswith("!") else f"!<{tag.tag}>"
    try:
        value = yaml.load(f"{tag_text} {text}", Loader=yaml.SafeLoader)
    except (yaml.YAMLError, ValueError, TypeError, AttributeError, LookupError):
        # malformed text for a known tag, e.g. `!!int abc`
        return default
    return value if _is_plain(value) else default


def _is_plain(value: Any) -> bool:
    """Check if a value is made only of str, int, float, bool, None, list and dict."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return True
    if isinstance(value, list):
        return all(_is_plain(item) for item in value)
    if isinstance(value, dict):
        return all(_is_plain(k) and _is_plain(v) for k, v in value.items())
    return False


def _to_key(value: Any) -> Any:
    """Coerce a key that is not a string or number to a string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return value
    if value is None:
        return "null"
    return json.dumps(value, default=str, ensure_ascii=False)
