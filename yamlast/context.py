"""Conversion context: position index and token/comment accumulator."""

from __future__ import annotations

import re
from bisect import bisect_right
from typing import Final

from .options import ParserOptions
from .types import (
    Comment,
    ParseError,
    Position,
    Range,
    SourceLocation,
    StructuralMismatchError,
    Token,
    TokenType,
)

LINE_BREAK_RE: Final[re.Pattern[str]] = re.compile(r"\r\n|\r")

BOM: Final[str] = "\ufeff"


def is_space(ch: str) -> bool:
    """Check if a character is whitespace (a byte order mark counts)."""
    return ch.isspace() or ch == BOM


def skip_spaces(code: str, index: int) -> int:
    """Return the first non-space index at or after `index`."""
    end = len(code)
    while index < end and is_space(code[index]):
        index += 1
    return index


class LinesAndColumns:
    """Map character offsets to line/column positions."""

    __slots__ = ("line_start_indices",)

    def __init__(self, code: str) -> None:
        self.line_start_indices = [0]
        for index, ch in enumerate(code):
            if ch == "\n":
                self.line_start_indices.append(index + 1)

    def get_loc_from_index(self, index: int) -> Position:
        """Return the position of an offset."""
        line = bisect_right(self.line_start_indices, index)
        return Position(line=line, column=index - self.line_start_indices[line - 1])

    def get_index_from_loc(self, loc: Position) -> int:
        """Return the offset of a position."""
        return self.line_start_indices[loc.line - 1] + loc.column


class Context:
    """State shared by a single conversion."""

    __slots__ = ("code", "comments", "locs", "options", "tokens", "_loc_cache")

    def __init__(self, original_code: str, options: ParserOptions | None = None) -> None:
        self.code = LINE_BREAK_RE.sub("\n", original_code)
        self.options = options or ParserOptions()
        self.tokens: list[Token] = []
        self.comments: list[Comment] = []
        self.locs = LinesAndColumns(self.code)
        self._loc_cache: dict[int, Position] = {}

    def get_loc_from_index(self, index: int) -> Position:
        """Return the (memoized) position of an offset."""
        loc = self._loc_cache.get(index)
        if loc is None:
            loc = self.locs.get_loc_from_index(index)
            self._loc_cache[index] = loc
        return loc

    def get_convert_location(self, start: int, end: int) -> tuple[Range, SourceLocation]:
        """Return the range and location of `[start, end)`."""
        return Range(start, end), SourceLocation(
            start=self.get_loc_from_index(start),
            end=self.get_loc_from_index(end),
        )

    def add_token(self, token_type: TokenType, start: int, end: int) -> Token:
        """Register a token covering `[start, end)`."""
        span, loc = self.get_convert_location(start, end)
        token = Token(type=token_type, value=self.code[start:end], range=span, loc=loc)
        self.tokens.append(token)
        return token

    def add_comment(self, comment: Comment) -> None:
        self.comments.append(comment)

    def last_skip_spaces(self, start: int, end: int) -> int:
        """Return the index just after the last non-space character in `[start, end)`."""
        while end > start and is_space(self.code[end - 1]):
            end -= 1
        return end

    def error(self, message: str, offset: int) -> ParseError:
        """Build a parse error at `offset`."""
        loc = self.get_loc_from_index(offset)
        return ParseError(message, offset, loc.line, loc.column)

    def unexpected_token_error(self, source: str, offset: int) -> ParseError:
        """Build an error for a token the converter cannot place."""
        return self.error(f"Unexpected token: {source!r}", offset)

    def mismatch_error(self, message: str, offset: int) -> StructuralMismatchError:
        """Build an error for a token stream / node tree disagreement."""
        loc = self.get_loc_from_index(offset)
        return StructuralMismatchError(message, offset, loc.line, loc.column)
