"""Adapter around PyYAML's scanner and composer.

One PyYAML pass yields two views of the source: the token stream the
scanner handed to the parser, and the composed node tree. Comments, which
PyYAML's scanner discards, are recovered from the uncovered gaps between
tokens and merged into the stream.
"""

from __future__ import annotations

import heapq
import re
from dataclasses import dataclass
from enum import Enum
from operator import attrgetter
from typing import Any, Final

import yaml
from yaml.composer import Composer, ComposerError
from yaml.events import AliasEvent, MappingStartEvent, ScalarEvent, SequenceStartEvent
from yaml.parser import Parser
from yaml.reader import Reader, ReaderError
from yaml.resolver import BaseResolver
from yaml.scanner import Scanner

from .context import Context


class CstTokenType(Enum):
    """Token types of the low-level stream."""

    STREAM_START = "stream-start"
    STREAM_END = "stream-end"
    DIRECTIVE = "directive"
    DOCUMENT_START = "document-start"
    DOCUMENT_END = "document-end"
    BLOCK_SEQUENCE_START = "block-sequence-start"
    BLOCK_MAPPING_START = "block-mapping-start"
    BLOCK_END = "block-end"
    FLOW_SEQUENCE_START = "flow-sequence-start"
    FLOW_SEQUENCE_END = "flow-sequence-end"
    FLOW_MAPPING_START = "flow-mapping-start"
    FLOW_MAPPING_END = "flow-mapping-end"
    KEY = "key"
    VALUE = "value"
    BLOCK_ENTRY = "block-entry"
    FLOW_ENTRY = "flow-entry"
    ALIAS = "alias"
    ANCHOR = "anchor"
    TAG = "tag"
    SCALAR = "scalar"
    COMMENT = "comment"


_TOKEN_TYPES: Final[dict[type[yaml.Token], CstTokenType]] = {
    yaml.StreamStartToken: CstTokenType.STREAM_START,
    yaml.StreamEndToken: CstTokenType.STREAM_END,
    yaml.DirectiveToken: CstTokenType.DIRECTIVE,
    yaml.DocumentStartToken: CstTokenType.DOCUMENT_START,
    yaml.DocumentEndToken: CstTokenType.DOCUMENT_END,
    yaml.BlockSequenceStartToken: CstTokenType.BLOCK_SEQUENCE_START,
    yaml.BlockMappingStartToken: CstTokenType.BLOCK_MAPPING_START,
    yaml.BlockEndToken: CstTokenType.BLOCK_END,
    yaml.FlowSequenceStartToken: CstTokenType.FLOW_SEQUENCE_START,
    yaml.FlowSequenceEndToken: CstTokenType.FLOW_SEQUENCE_END,
    yaml.FlowMappingStartToken: CstTokenType.FLOW_MAPPING_START,
    yaml.FlowMappingEndToken: CstTokenType.FLOW_MAPPING_END,
    yaml.KeyToken: CstTokenType.KEY,
    yaml.ValueToken: CstTokenType.VALUE,
    yaml.BlockEntryToken: CstTokenType.BLOCK_ENTRY,
    yaml.FlowEntryToken: CstTokenType.FLOW_ENTRY,
    yaml.AliasToken: CstTokenType.ALIAS,
    yaml.AnchorToken: CstTokenType.ANCHOR,
    yaml.TagToken: CstTokenType.TAG,
    yaml.ScalarToken: CstTokenType.SCALAR,
}

LINE_BREAKS: Final[frozenset[str]] = frozenset("\n\r\x85\u2028\u2029")

DIRECTIVE_COMMENT_RE: Final[re.Pattern[str]] = re.compile(r"[ \t]#")


@dataclass(slots=True)
class CstToken:
    """A token of the low-level stream.

    `value` is the decoded payload: the scalar string, the anchor or alias
    name, the `(handle, suffix)` pair of a tag, or the parsed value of a
    directive. `style` is the scalar style (None for plain scalars).
    """

    type: CstTokenType
    offset: int
    source: str
    value: Any = None
    style: str | None = None
    name: str | None = None

    @property
    def end(self) -> int:
        return self.offset + len(self.source)


@dataclass(slots=True)
class CstStream:
    """The token stream and composed documents of one source."""

    tokens: list[CstToken]
    documents: list[yaml.Node]


class AliasNode(yaml.Node):
    """A composed alias, kept as its own node instead of the anchored one."""

    id = "alias"


class SourceComposer(Composer):
    """Composer that keeps aliases and allows anchors to be redefined."""

    def compose_node(self, parent: yaml.Node | None, index: Any) -> yaml.Node:
        if self.check_event(AliasEvent):
            event = self.get_event()
            if event.anchor not in self.anchors:
                raise ComposerError(
                    None, None, f"found undefined alias {event.anchor!r}", event.start_mark
                )
            return AliasNode(None, event.anchor, event.start_mark, event.end_mark)
        anchor = self.peek_event().anchor
        self.descend_resolver(parent, index)
        if self.check_event(ScalarEvent):
            node = self.compose_scalar_node(anchor)
        elif self.check_event(SequenceStartEvent):
            node = self.compose_sequence_node(anchor)
        elif self.check_event(MappingStartEvent):
            node = self.compose_mapping_node(anchor)
        self.ascend_resolver()
        return node


class SourceLoader(Reader, Scanner, Parser, SourceComposer, BaseResolver):
    """PyYAML loader that records the scanned tokens."""

    def __init__(self, stream: str) -> None:
        Reader.__init__(self, stream)
        Scanner.__init__(self)
        Parser.__init__(self)
        SourceComposer.__init__(self)
        BaseResolver.__init__(self)
        self.scanned_tokens: list[yaml.Token] = []

    def get_token(self) -> yaml.Token | None:
        token = Scanner.get_token(self)
        if token is not None:
            self.scanned_tokens.append(token)
        return token


def parse_all_docs_to_cst(ctx: Context) -> CstStream:
    """Scan and compose every document of the normalized source."""
    try:
        loader = SourceLoader(ctx.code)
    except ReaderError as exc:
        raise ctx.error(
            f"unacceptable character #x{exc.character:04x}: {exc.reason}", exc.position
        ) from exc
    try:
        documents = []
        while loader.check_node():
            documents.append(loader.get_node())
    except yaml.MarkedYAMLError as exc:
        raise _translate_error(ctx, exc) from exc
    finally:
        loader.dispose()

    tokens = [_to_cst_token(ctx.code, token) for token in loader.scanned_tokens]
    comments = _find_comments(ctx.code, tokens)
    merged = list(heapq.merge(tokens, comments, key=attrgetter("offset")))
    return CstStream(tokens=merged, documents=documents)


def _translate_error(ctx: Context, exc: yaml.MarkedYAMLError) -> Exception:
    mark = exc.problem_mark or exc.context_mark
    offset = mark.index if mark is not None else len(ctx.code)
    message = exc.problem or exc.context or str(exc)
    if exc.context and exc.problem:
        message = f"{exc.context}: {exc.problem}"
    return ctx.error(message, offset)


def _to_cst_token(code: str, token: yaml.Token) -> CstToken:
    token_type = _TOKEN_TYPES[type(token)]
    start = token.start_mark.index
    end = token.end_mark.index
    match token_type:
        case CstTokenType.SCALAR:
            return CstToken(
                token_type, start, code[start:end], token.value, style=token.style
            )
        case CstTokenType.ALIAS | CstTokenType.ANCHOR | CstTokenType.TAG:
            return CstToken(token_type, start, code[start:end], token.value)
        case CstTokenType.DIRECTIVE:
            if token.name not in ("YAML", "TAG"):
                end = _directive_end(code, start)
            return CstToken(
                token_type, start, code[start:end], token.value, name=token.name
            )
        case _:
            return CstToken(token_type, start, code[start:end])


def _directive_end(code: str, start: int) -> int:
    """Return the end of a reserved directive, excluding a trailing comment."""
    end = start
    while end < len(code) and code[end] not in LINE_BREAKS:
        end += 1
    line = code[start:end]
    match = DIRECTIVE_COMMENT_RE.search(line)
    if match:
        line = line[: match.start()]
    return start + len(line.rstrip())


def _find_comments(code: str, tokens: list[CstToken]) -> list[CstToken]:
    """Collect `#` comments from the source not covered by any token."""
    comments: list[CstToken] = []
    pos = 0
    for token in sorted(tokens, key=attrgetter("offset")):
        if token.end == token.offset:
            continue
        _scan_gap(code, pos, token.offset, comments)
        pos = max(pos, token.end)
    _scan_gap(code, pos, len(code), comments)
    return comments


def _scan_gap(code: str, start: int, end: int, comments: list[CstToken]) -> None:
    index = start
    while index < end:
        if code[index] == "#":
            comment_end = index
            while comment_end < end and code[comment_end] not in LINE_BREAKS:
                comment_end += 1
            comments.append(
                CstToken(CstTokenType.COMMENT, index, code[index:comment_end])
            )
            index = comment_end
        else:
            index += 1
