"""Public entry points: YAML source to AST."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .context import Context
from .convert import convert_root
from .cst import parse_all_docs_to_cst
from .options import ParserOptions
from .types import Comment, Program, Token
from .visitor_keys import VISITOR_KEYS

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ParseResult:
    """The AST of a source together with its visitor keys."""

    ast: Program
    visitor_keys: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: VISITOR_KEYS)

    @property
    def tokens(self) -> list[Token]:
        return self.ast.tokens

    @property
    def comments(self) -> list[Comment]:
        return self.ast.comments


def parse(
    code: str, options: ParserOptions | Mapping[str, Any] | None = None
) -> ParseResult:
    """Parse YAML source into an AST with tokens and comments.

    Raises ParseError for malformed YAML and StructuralMismatchError when
    the token stream and the composed tree disagree.
    """
    if not isinstance(options, ParserOptions):
        options = ParserOptions.from_mapping(options)
    ctx = Context(code, options)
    logger.debug(
        "parsing %d characters (default version %s)",
        len(ctx.code),
        options.default_yaml_version,
    )
    stream = parse_all_docs_to_cst(ctx)
    return ParseResult(ast=convert_root(stream, ctx))


def parse_yaml(
    code: str, options: ParserOptions | Mapping[str, Any] | None = None
) -> Program:
    """Parse YAML source and return only the Program."""
    return parse(code, options).ast
