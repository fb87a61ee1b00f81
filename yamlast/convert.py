"""Convert PyYAML's token stream and composed nodes into the AST.

The converter walks the token stream with the same grammar PyYAML's parser
uses, consuming the composed nodes in lockstep. Each composed node must
start at the offset of the token being visited and have the expected kind;
otherwise a StructuralMismatchError is raised.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterator
from dataclasses import dataclass
from itertools import chain
from operator import attrgetter
from typing import Any, Final, TypeVar

import yaml

from .context import Context, is_space, skip_spaces
from .cst import AliasNode, CstStream, CstToken, CstTokenType
from .options import SUPPORTED_VERSIONS
from .tags import STR_TAG, resolve_plain
from .types import (
    Alias,
    Anchor,
    BaseNode,
    Chomping,
    CollectionStyle,
    Comment,
    CommentType,
    Content,
    Directive,
    Document,
    Mapping,
    Pair,
    ParseError,
    Program,
    Range,
    Scalar,
    ScalarStyle,
    Sequence,
    SourceLocation,
    Tag,
    Token,
    TokenType,
    WithMeta,
    YAMLVersion,
)

logger = logging.getLogger(__name__)

BLOCK_HEADER_RE: Final[re.Pattern[str]] = re.compile(r"[|>]([+-]?)(\d*)([+-]?)")

PUNCTUATION: Final[frozenset[str]] = frozenset("-?:,[]{}&*!|>'\"%@`#")

_BLOCK_ENDS: Final[tuple[CstTokenType, ...]] = (
    CstTokenType.KEY,
    CstTokenType.VALUE,
    CstTokenType.BLOCK_END,
)
_INDENTLESS_ENDS: Final[tuple[CstTokenType, ...]] = (
    CstTokenType.BLOCK_ENTRY,
    *_BLOCK_ENDS,
)
_DOCUMENT_ENDS: Final[tuple[CstTokenType, ...]] = (
    CstTokenType.DIRECTIVE,
    CstTokenType.DOCUMENT_START,
    CstTokenType.DOCUMENT_END,
    CstTokenType.STREAM_END,
)

_SCALAR_STYLES: Final[dict[str, ScalarStyle]] = {
    "'": ScalarStyle.SINGLE_QUOTED,
    '"': ScalarStyle.DOUBLE_QUOTED,
    "|": ScalarStyle.LITERAL,
    ">": ScalarStyle.FOLDED,
}

_range_key = attrgetter("range.start", "range.end")


@dataclass(slots=True)
class _DocumentDraft:
    """A document whose range is finalized after the whole stream is read."""

    directives: list[Directive]
    content: Content | None
    anchors: dict[str, list[Anchor]]
    version: YAMLVersion
    start: int
    end: int


def _adopt(parent: BaseNode, *children: BaseNode | None) -> None:
    for child in children:
        if child is not None:
            child.parent = parent


class Converter:
    """Build a Program from one CST stream."""

    __slots__ = ("ctx", "documents", "pos", "tokens", "_anchors", "_version")

    def __init__(self, stream: CstStream, ctx: Context) -> None:
        self.ctx = ctx
        self.tokens = stream.tokens
        self.documents: Iterator[yaml.Node] = iter(stream.documents)
        self.pos = 0
        self._anchors: dict[str, list[Anchor]] = {}
        self._version: YAMLVersion = "1.2"

    def _peek(self) -> CstToken:
        """Return the current token, registering the comments before it."""
        token = self.tokens[self.pos]
        while token.type is CstTokenType.COMMENT:
            self._add_comment(token.offset, token.end)
            self.pos += 1
            token = self.tokens[self.pos]
        return token

    def _advance(self) -> CstToken:
        """Consume and return the current token."""
        token = self._peek()
        self.pos += 1
        return token

    def _check(self, *types: CstTokenType) -> bool:
        """Check if the current token matches any of the given types."""
        return self._peek().type in types

    def _expect(self, token_type: CstTokenType) -> CstToken:
        """Expect a specific token type."""
        if not self._check(token_type):
            raise self._unexpected(self._peek())
        return self._advance()

    def _unexpected(self, token: CstToken) -> ParseError:
        return self.ctx.unexpected_token_error(token.source, token.offset)

    def _locate(self, start: int, end: int) -> tuple[Range, SourceLocation]:
        return self.ctx.get_convert_location(start, end)

    def _add_comment(self, start: int, end: int) -> None:
        span, loc = self._locate(start, end)
        self.ctx.add_comment(
            Comment(
                type=CommentType.LINE,
                value=self.ctx.code[start + 1 : end],
                range=span,
                loc=loc,
            )
        )

    def _add_indicator(self, token: CstToken) -> Token | None:
        """Register a punctuator unless the token is zero-width."""
        if token.end == token.offset:
            return None
        return self.ctx.add_token(TokenType.PUNCTUATOR, token.offset, token.end)

    def _expect_node(self, node: yaml.Node, node_class: type[yaml.Node], offset: int) -> None:
        if not isinstance(node, node_class):
            raise self.ctx.mismatch_error(
                f"unknown error: AST is not {node_class.id} ({node.id})", offset
            )

    def _expect_empty(self, node: yaml.Node, offset: int) -> None:
        if not (isinstance(node, yaml.ScalarNode) and node.value == "" and node.style is None):
            raise self.ctx.mismatch_error(
                f"unknown error: AST is not an empty scalar ({node.id})", offset
            )

    def _next_node(self, nodes: Iterator[yaml.Node], offset: int) -> yaml.Node:
        node = next(nodes, None)
        if node is None:
            raise self.ctx.mismatch_error("unknown error: CST is mismatched", offset)
        return node

    def _expect_exhausted(self, nodes: Iterator[Any], offset: int) -> None:
        if next(nodes, None) is not None:
            raise self.ctx.mismatch_error("unknown error: CST is mismatched", offset)

    def convert(self) -> Program:
        """Convert the whole stream."""
        self._expect(CstTokenType.STREAM_START)
        drafts: list[_DocumentDraft] = []
        index = 0
        while not self._check(CstTokenType.STREAM_END):
            draft = self._convert_document(index)
            drafts.append(draft)
            index = draft.end
        self._advance()
        self._expect_exhausted(self.documents, len(self.ctx.code))

        if not drafts:
            start = skip_spaces(self.ctx.code, 0)
            drafts.append(
                _DocumentDraft([], None, {}, self.ctx.options.resolve_version(None), start, start)
            )

        self._add_orphan_tokens()
        self.ctx.tokens[:] = unique_by_range(self.ctx.tokens)
        self.ctx.comments[:] = unique_by_range(self.ctx.comments)
        if self.ctx.comments:
            last = drafts[-1]
            last.end = max(last.end, self.ctx.comments[-1].range.end)

        body = [self._finish_document(draft) for draft in drafts]
        span, loc = self._locate(0, len(self.ctx.code))
        program = Program(
            range=span,
            loc=loc,
            body=body,
            comments=self.ctx.comments,
            tokens=self.ctx.tokens,
        )
        _adopt(program, *body)
        logger.debug(
            "converted %d document(s), %d token(s), %d comment(s)",
            len(body),
            len(program.tokens),
            len(program.comments),
        )
        return program

    def _convert_document(self, index: int) -> _DocumentDraft:
        """Convert directives, markers and content of one document."""
        start = skip_spaces(self.ctx.code, index)
        end = start
        directives: list[Directive] = []
        while self._check(CstTokenType.DIRECTIVE):
            directive = self._convert_directive(self._advance())
            directives.append(directive)
            end = directive.range.end

        self._version = self._resolve_version(directives)
        self._anchors = {}
        node = self._next_node(self.documents, self._peek().offset)

        explicit = self._check(CstTokenType.DOCUMENT_START)
        if explicit:
            end = self._add_marker(self._advance())
        elif directives:
            raise self._unexpected(self._peek())

        content: Content | None = None
        if explicit and self._check(*_DOCUMENT_ENDS):
            self._expect_empty(node, end)
        else:
            content = self._convert_node(node)
            end = content.range.end if content is not None else end

        while self._check(CstTokenType.DOCUMENT_END):
            end = self._add_marker(self._advance())

        return _DocumentDraft(directives, content, self._anchors, self._version, start, end)

    def _add_marker(self, token: CstToken) -> int:
        self.ctx.add_token(TokenType.MARKER, token.offset, token.end)
        return token.end

    def _finish_document(self, draft: _DocumentDraft) -> Document:
        span, loc = self._locate(draft.start, draft.end)
        document = Document(
            range=span,
            loc=loc,
            directives=draft.directives,
            content=draft.content,
            anchors=draft.anchors,
            version=draft.version,
        )
        _adopt(document, *draft.directives, draft.content)
        return document

    def _convert_directive(self, token: CstToken) -> Directive:
        self.ctx.add_token(TokenType.DIRECTIVE, token.offset, token.end)
        span, loc = self._locate(token.offset, token.end)
        match token.name:
            case "YAML":
                major, minor = token.value
                return Directive(
                    range=span,
                    loc=loc,
                    value=token.source,
                    kind="YAML",
                    version=f"{major}.{minor}",
                )
            case "TAG":
                handle, prefix = token.value
                return Directive(
                    range=span,
                    loc=loc,
                    value=token.source,
                    kind="TAG",
                    handle=handle,
                    prefix=prefix,
                )
            case _:
                return Directive(range=span, loc=loc, value=token.source)

    def _resolve_version(self, directives: list[Directive]) -> YAMLVersion:
        directive = next((d for d in directives if d.kind == "YAML"), None)
        if directive is None:
            return self.ctx.options.resolve_version(None)
        if self.ctx.options.strict and directive.version not in SUPPORTED_VERSIONS:
            raise self.ctx.error(
                f"Unsupported YAML version: {directive.version}", directive.range.start
            )
        return self.ctx.options.resolve_version(directive.version)

    def _convert_node(self, node: yaml.Node, *, indentless: bool = False) -> Content | None:
        """Convert a node with its optional anchor and tag."""
        if self._check(CstTokenType.ALIAS):
            return self._convert_alias(node)

        props: list[CstToken] = []
        while self._check(CstTokenType.ANCHOR, CstTokenType.TAG):
            props.append(self._advance())
        token = self._peek()
        start = props[0].offset if props else token.offset
        if node.start_mark.index != start:
            raise self.ctx.mismatch_error(
                f"unknown error: CST is mismatched ({node.id} node at {node.start_mark.index})",
                start,
            )

        content: Content | None
        match token.type:
            case CstTokenType.SCALAR:
                content = self._convert_scalar(node)
            case CstTokenType.FLOW_SEQUENCE_START:
                content = self._convert_flow_sequence(node)
            case CstTokenType.FLOW_MAPPING_START:
                content = self._convert_flow_mapping(node)
            case CstTokenType.BLOCK_SEQUENCE_START:
                content = self._convert_block_sequence(node)
            case CstTokenType.BLOCK_MAPPING_START:
                content = self._convert_block_mapping(node)
            case CstTokenType.BLOCK_ENTRY if indentless:
                content = self._convert_indentless_sequence(node)
            case _:
                if not props:
                    raise self._unexpected(token)
                self._expect_empty(node, start)
                content = None
        return self._wrap_meta(props, node, content)

    def _wrap_meta(
        self, props: list[CstToken], node: yaml.Node, content: Content | None
    ) -> Content | None:
        if not props:
            return content
        anchor: Anchor | None = None
        tag: Tag | None = None
        for token in props:
            if token.type is CstTokenType.ANCHOR:
                anchor = self._convert_anchor(token)
            else:
                tag = self._convert_tag(token, node)
        end = content.range.end if content is not None else props[-1].end
        span, loc = self._locate(props[0].offset, end)
        meta = WithMeta(range=span, loc=loc, anchor=anchor, tag=tag, value=content)
        _adopt(meta, anchor, tag, content)
        return meta

    def _convert_anchor(self, token: CstToken) -> Anchor:
        self.ctx.add_token(TokenType.PUNCTUATOR, token.offset, token.offset + 1)
        if token.end > token.offset + 1:
            self.ctx.add_token(TokenType.IDENTIFIER, token.offset + 1, token.end)
        span, loc = self._locate(token.offset, token.end)
        anchor = Anchor(range=span, loc=loc, name=token.value)
        self._anchors.setdefault(anchor.name, []).append(anchor)
        return anchor

    def _convert_tag(self, token: CstToken, node: yaml.Node) -> Tag:
        length = 2 if token.source.startswith("!!") else 1
        self.ctx.add_token(TokenType.PUNCTUATOR, token.offset, token.offset + length)
        if token.end > token.offset + length:
            self.ctx.add_token(TokenType.IDENTIFIER, token.offset + length, token.end)
        span, loc = self._locate(token.offset, token.end)
        resolved = STR_TAG if token.source == "!" else node.tag
        return Tag(range=span, loc=loc, tag=resolved)

    def _convert_alias(self, node: yaml.Node) -> Alias:
        token = self._advance()
        self._expect_node(node, AliasNode, token.offset)
        if node.start_mark.index != token.offset:
            raise self.ctx.mismatch_error("unknown error: CST is mismatched", token.offset)
        self.ctx.add_token(TokenType.PUNCTUATOR, token.offset, token.offset + 1)
        if token.end > token.offset + 1:
            self.ctx.add_token(TokenType.IDENTIFIER, token.offset + 1, token.end)
        end = self.ctx.last_skip_spaces(token.offset, token.end)
        span, loc = self._locate(token.offset, end)
        return Alias(range=span, loc=loc, name=token.value)

    def _convert_scalar(self, node: yaml.Node) -> Scalar:
        token = self._advance()
        self._expect_node(node, yaml.ScalarNode, token.offset)
        if token.style is None:
            return self._convert_plain(token)
        style = _SCALAR_STYLES[token.style]
        if style in (ScalarStyle.LITERAL, ScalarStyle.FOLDED):
            return self._convert_block_scalar(token, style)
        self.ctx.add_token(TokenType.STRING, token.offset, token.end)
        span, loc = self._locate(token.offset, token.end)
        return Scalar(
            range=span,
            loc=loc,
            style=style,
            raw=token.source,
            str_value=token.value,
            value=token.value,
        )

    def _convert_plain(self, token: CstToken) -> Scalar:
        value = resolve_plain(token.value, self._version)
        if isinstance(value, bool):
            token_type = TokenType.BOOLEAN
        elif isinstance(value, (int, float)) and math.isfinite(value):
            token_type = TokenType.NUMERIC
        elif value is None:
            token_type = TokenType.NULL
        else:
            token_type = TokenType.IDENTIFIER
        self.ctx.add_token(token_type, token.offset, token.end)
        span, loc = self._locate(token.offset, token.end)
        return Scalar(
            range=span,
            loc=loc,
            style=ScalarStyle.PLAIN,
            raw=token.source,
            str_value=token.value,
            value=value,
        )

    def _convert_block_scalar(self, token: CstToken, style: ScalarStyle) -> Scalar:
        code = self.ctx.code
        start = token.offset
        line_end = token.source.find("\n")
        header_line = token.source if line_end < 0 else token.source[:line_end]
        header = BLOCK_HEADER_RE.match(header_line)
        if header is None:
            raise self._unexpected(token)
        header_end = start + header.end()
        self.ctx.add_token(TokenType.PUNCTUATOR, start, header_end)
        comment = header_line.find("#", header.end())
        if comment >= 0:
            self._add_comment(start + comment, start + len(header_line))

        indicators = header.group(1) + header.group(3)
        if "+" in indicators:
            chomping = Chomping.KEEP
        elif "-" in indicators:
            chomping = Chomping.STRIP
        else:
            chomping = Chomping.CLIP
        indent = int(header.group(2)) if header.group(2) else None

        body_start = token.end if line_end < 0 else start + line_end + 1
        if not token.value:
            end = header_end
        elif chomping is Chomping.KEEP:
            end = token.end
            if end > body_start and code[end - 1] == "\n":
                end -= 1
        else:
            end = self.ctx.last_skip_spaces(body_start, token.end)
        end = max(end, header_end)

        text_start = body_start
        while text_start < end and code[text_start] != "\n" and is_space(code[text_start]):
            text_start += 1
        if text_start < end:
            body_type = (
                TokenType.BLOCK_LITERAL if style is ScalarStyle.LITERAL else TokenType.BLOCK_FOLDED
            )
            self.ctx.add_token(body_type, text_start, end)

        span, loc = self._locate(start, end)
        return Scalar(
            range=span,
            loc=loc,
            style=style,
            raw=code[start:end],
            str_value=token.value,
            value=token.value,
            chomping=chomping,
            indent=indent,
        )

    def _convert_pair(
        self,
        key_token: CstToken | None,
        key_node: yaml.Node,
        value_node: yaml.Node,
        key_ends: tuple[CstTokenType, ...],
        value_ends: tuple[CstTokenType, ...],
        *,
        indentless: bool = False,
    ) -> Pair:
        """Convert a key, an optional `:` and a value into a Pair."""
        start = key_token.offset if key_token is not None else self._peek().offset
        key_indicator = self._add_indicator(key_token) if key_token is not None else None
        key: Content | None = None
        if key_token is not None and self._check(*key_ends):
            self._expect_empty(key_node, start)
        else:
            key = self._convert_node(key_node, indentless=indentless)

        value: Content | None = None
        value_indicator: Token | None = None
        if self._check(CstTokenType.VALUE):
            value_token = self._advance()
            value_indicator = self._add_indicator(value_token)
            if self._check(*value_ends):
                self._expect_empty(value_node, value_token.end)
            else:
                value = self._convert_node(value_node, indentless=indentless)
        else:
            self._expect_empty(value_node, self._peek().offset)

        end = start
        for last in (value, value_indicator, key, key_indicator):
            if last is not None:
                end = last.range.end
                break
        span, loc = self._locate(start, end)
        pair = Pair(range=span, loc=loc, key=key, value=value)
        _adopt(pair, key, value)
        return pair

    def _convert_block_mapping(self, node: yaml.Node) -> Mapping:
        token = self._advance()
        self._expect_node(node, yaml.MappingNode, token.offset)
        items = iter(node.value)
        pairs: list[Pair] = []
        while self._check(CstTokenType.KEY):
            key_token = self._advance()
            key_node, value_node = self._next_item(items, key_token.offset)
            pairs.append(
                self._convert_pair(
                    key_token, key_node, value_node, _BLOCK_ENDS, _BLOCK_ENDS, indentless=True
                )
            )
        end_token = self._expect(CstTokenType.BLOCK_END)
        self._expect_exhausted(items, end_token.offset)
        if not pairs:
            raise self._unexpected(end_token)
        return self._finish_mapping(
            CollectionStyle.BLOCK, pairs, pairs[0].range.start, pairs[-1].range.end
        )

    def _convert_flow_mapping(self, node: yaml.Node) -> Mapping:
        open_token = self._advance()
        self._expect_node(node, yaml.MappingNode, open_token.offset)
        self._add_indicator(open_token)
        items = iter(node.value)
        pairs: list[Pair] = []
        ends = (CstTokenType.FLOW_ENTRY, CstTokenType.FLOW_MAPPING_END)
        while not self._check(CstTokenType.FLOW_MAPPING_END):
            if pairs:
                self._add_indicator(self._expect(CstTokenType.FLOW_ENTRY))
                if self._check(CstTokenType.FLOW_MAPPING_END):
                    break
            key_token = self._advance() if self._check(CstTokenType.KEY) else None
            key_node, value_node = self._next_item(items, self._peek().offset)
            pairs.append(
                self._convert_pair(
                    key_token, key_node, value_node, (CstTokenType.VALUE, *ends), ends
                )
            )
        close_token = self._advance()
        self._add_indicator(close_token)
        self._expect_exhausted(items, close_token.offset)
        return self._finish_mapping(
            CollectionStyle.FLOW, pairs, open_token.offset, close_token.end
        )

    def _next_item(self, items: Iterator[Any], offset: int) -> tuple[yaml.Node, yaml.Node]:
        item = next(items, None)
        if item is None:
            raise self.ctx.mismatch_error("unknown error: CST is mismatched", offset)
        return item

    def _finish_mapping(
        self, style: CollectionStyle, pairs: list[Pair], start: int, end: int
    ) -> Mapping:
        if self.ctx.options.unique_keys:
            self._check_unique_keys(pairs)
        span, loc = self._locate(start, end)
        mapping = Mapping(range=span, loc=loc, style=style, pairs=pairs)
        _adopt(mapping, *pairs)
        return mapping

    def _check_unique_keys(self, pairs: list[Pair]) -> None:
        seen: set[Any] = set()
        for pair in pairs:
            identity = _key_identity(pair.key)
            if identity is None:
                continue
            if identity in seen:
                offset = pair.key.range.start if pair.key is not None else pair.range.start
                raise self.ctx.error("Map keys must be unique", offset)
            seen.add(identity)

    def _convert_block_sequence(self, node: yaml.Node) -> Sequence:
        token = self._advance()
        self._expect_node(node, yaml.SequenceNode, token.offset)
        sequence = self._convert_entries(node, (CstTokenType.BLOCK_ENTRY, CstTokenType.BLOCK_END))
        self._expect(CstTokenType.BLOCK_END)
        return sequence

    def _convert_indentless_sequence(self, node: yaml.Node) -> Sequence:
        self._expect_node(node, yaml.SequenceNode, self._peek().offset)
        return self._convert_entries(node, _INDENTLESS_ENDS)

    def _convert_entries(self, node: yaml.Node, empty_before: tuple[CstTokenType, ...]) -> Sequence:
        """Convert `-` entries of a block sequence."""
        items = iter(node.value)
        entries: list[Content | None] = []
        indicator: Token | None = None
        start = self._peek().offset
        while self._check(CstTokenType.BLOCK_ENTRY):
            entry_token = self._advance()
            indicator = self._add_indicator(entry_token)
            item = self._next_node(items, entry_token.offset)
            if self._check(*empty_before):
                self._expect_empty(item, entry_token.end)
                entries.append(None)
            else:
                entries.append(self._convert_node(item))
        if indicator is None:
            raise self._unexpected(self._peek())
        self._expect_exhausted(items, self._peek().offset)
        last = entries[-1]
        end = last.range.end if last is not None else indicator.range.end
        span, loc = self._locate(start, end)
        sequence = Sequence(range=span, loc=loc, style=CollectionStyle.BLOCK, entries=entries)
        _adopt(sequence, *entries)
        return sequence

    def _convert_flow_sequence(self, node: yaml.Node) -> Sequence:
        open_token = self._advance()
        self._expect_node(node, yaml.SequenceNode, open_token.offset)
        self._add_indicator(open_token)
        items = iter(node.value)
        entries: list[Content | None] = []
        while not self._check(CstTokenType.FLOW_SEQUENCE_END):
            if entries:
                self._add_indicator(self._expect(CstTokenType.FLOW_ENTRY))
                if self._check(CstTokenType.FLOW_SEQUENCE_END):
                    break
            item = self._next_node(items, self._peek().offset)
            if self._check(CstTokenType.KEY):
                entries.append(self._convert_flow_pair_mapping(item))
            else:
                entries.append(self._convert_node(item))
        close_token = self._advance()
        self._add_indicator(close_token)
        self._expect_exhausted(items, close_token.offset)
        span, loc = self._locate(open_token.offset, close_token.end)
        sequence = Sequence(range=span, loc=loc, style=CollectionStyle.FLOW, entries=entries)
        _adopt(sequence, *entries)
        return sequence

    def _convert_flow_pair_mapping(self, node: yaml.Node) -> Mapping:
        """Convert a `key: value` entry of a flow sequence into a one-pair mapping."""
        key_token = self._advance()
        self._expect_node(node, yaml.MappingNode, key_token.offset)
        if node.start_mark.index != key_token.offset or len(node.value) != 1:
            raise self.ctx.mismatch_error("unknown error: CST is mismatched", key_token.offset)
        key_node, value_node = node.value[0]
        ends = (CstTokenType.FLOW_ENTRY, CstTokenType.FLOW_SEQUENCE_END)
        pair = self._convert_pair(
            key_token, key_node, value_node, (CstTokenType.VALUE, *ends), ends
        )
        return self._finish_mapping(
            CollectionStyle.BLOCK, [pair], pair.range.start, pair.range.end
        )

    def _add_orphan_tokens(self) -> None:
        """Register unclaimed printable characters as tokens."""
        claimed = sorted(
            (item.range for item in chain(self.ctx.tokens, self.ctx.comments)),
            key=attrgetter("start", "end"),
        )
        count = 0
        pos = 0
        for claimed_range in claimed:
            if claimed_range.start > pos:
                count += self._claim_gap(pos, claimed_range.start)
            pos = max(pos, claimed_range.end)
        count += self._claim_gap(pos, len(self.ctx.code))
        if count:
            logger.debug("synthesized %d orphan token(s)", count)

    def _claim_gap(self, start: int, end: int) -> int:
        code = self.ctx.code
        count = 0
        index = start
        while index < end:
            if is_space(code[index]):
                index += 1
                continue
            run_end = index
            while run_end < end and not is_space(code[run_end]):
                run_end += 1
            text = code[index:run_end]
            token_type = (
                TokenType.PUNCTUATOR
                if all(ch in PUNCTUATION for ch in text)
                else TokenType.IDENTIFIER
            )
            self.ctx.add_token(token_type, index, run_end)
            count += 1
            index = run_end
        return count


T = TypeVar("T", Token, Comment)


def unique_by_range(items: list[T]) -> list[T]:
    """Sort items by range, keeping the first one registered for each range."""
    result: list[T] = []
    for item in sorted(items, key=_range_key):
        if result and result[-1].range == item.range:
            continue
        result.append(item)
    return result


def _key_identity(key: Content | None) -> Any:
    """Return a hashable identity of a scalar key, or None if not comparable."""
    if isinstance(key, WithMeta):
        key = key.value
    if key is None:
        return ("null", None)
    if isinstance(key, Scalar):
        return (type(key.value).__name__, key.value)
    return None


def convert_root(stream: CstStream, ctx: Context) -> Program:
    """Convert a CST stream into a Program."""
    return Converter(stream, ctx).convert()
