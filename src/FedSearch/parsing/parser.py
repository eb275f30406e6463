"""Recursive-descent query parser.

Grammar::

    query  := expr*
    expr   := term ( OR expr | NEAR expr )?
    term   := NOT expr | symbol
    symbol := any single token from the lexer

A sequence of expressions is implicitly AND-ed; ``or`` is right-associative,
so ``a or b or c`` parses as ``Or(a, Or(b, c))``. ``not`` binds only the next
expression and does not swallow a following ``or``/``near``.

Meta prefixes (``thread:``, ``limit:``, ``raw:``, ``no-parse:``, ``count:``)
are only read ahead of the query proper and are removed before parsing; see
`prepare_query`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Optional, Sequence

from FedSearch.core.errors import SearchParseError
from FedSearch.core.query import And, Expression, Group, KeyValue, Literal, Near, Not, Or, Query, QuerySpec
from FedSearch.parsing.keywords import DEFAULT_DATE_KEYS, DEFAULT_EXPANDABLE_KEYS, expand_key
from FedSearch.parsing.lexer import QueryLexer, Token, TokenKind
from FedSearch.parsing.values import ContactSource, parse_contact, parse_date, parse_mark

_RE_META = re.compile(r"\s*(thread|limit|raw|no-parse|count):(\S+)", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class QueryParser:
    """Parse query strings into expression trees.

    The parser holds configuration only, so one instance can be shared by
    concurrent callers as long as the contact sources are thread-safe.

    Attributes:
        vocabulary: Full keyword names used for abbreviation expansion.
        date_keys: Keys whose values are normalized as dates.
        contact_sources: Ordered lookups for ``contact*`` keys.
        reference: Fixed "now" for relative dates; None means the current time.
    """

    vocabulary: Sequence[str] = DEFAULT_EXPANDABLE_KEYS
    date_keys: Sequence[str] = DEFAULT_DATE_KEYS
    contact_sources: Sequence[ContactSource] = field(default_factory=tuple)
    reference: Optional[datetime | date] = None

    def parse(self, text: str) -> Query:
        """Parse ``text`` into an ordered tuple of expressions.

        Raises:
            SearchParseError: On unmatched delimiters, ambiguous keywords,
                malformed ``near`` or missing operands.
        """
        lexer = QueryLexer(
            text=text.strip(),
            parse_group=self.parse,
            expand_key=lambda key: expand_key(key, self.vocabulary),
            reduce_pair=self.reduce_pair,
        )
        out: list[Expression] = []
        pos = 0
        while not lexer.at_end(pos):
            expr, pos = self._next_expr(lexer, pos)
            out.append(expr)
        return tuple(out)

    def reduce_pair(self, key: str, value: str | Group) -> Expression:
        """Turn an expanded key and its raw value into an expression node."""
        if isinstance(value, Group):
            return KeyValue(key, value)
        if key in self.date_keys:
            if key == "after":
                key = "since"
            return KeyValue(key, parse_date(value, self.reference))
        if "contact" in key:
            return parse_contact(key, value, self.contact_sources)
        if key == "address":
            return Or(KeyValue("sender", value), KeyValue("recipient", value))
        if key == "mark":
            return KeyValue(key, parse_mark(value))
        if key == "message-id":
            return KeyValue("id", value)
        return KeyValue(key, value)

    def _next_expr(self, lexer: QueryLexer, pos: int, *, halt: bool = False) -> tuple[Expression, int]:
        term, pos = self._next_term(lexer, pos)
        peek, after = lexer.next_token(pos)
        if peek is None:
            return term, pos
        if halt and peek.kind in (TokenKind.OR, TokenKind.NEAR):
            return term, pos

        if peek.kind is TokenKind.OR:
            right, pos = self._operand(lexer, after, peek)
            return Or(term, right), pos
        if peek.kind is TokenKind.NEAR:
            right, pos = self._operand(lexer, after, peek)
            if not (isinstance(term, Literal) and isinstance(right, Literal)):
                raise SearchParseError(
                    f"near requires plain strings on both sides, got {_describe(term)} and {_describe(right)}"
                )
            return Near(term, right), pos
        return term, pos

    def _next_term(self, lexer: QueryLexer, pos: int) -> tuple[Expression, int]:
        token, after = lexer.next_token(pos)
        if token is None:
            raise SearchParseError("Unexpected end of query")
        if token.kind is TokenKind.NOT:
            operand, after = self._operand(lexer, after, token, halt=True)
            return Not(operand), after
        return _symbol(token), after

    def _operand(self, lexer: QueryLexer, pos: int, operator: Token, *, halt: bool = False) -> tuple[Expression, int]:
        if lexer.at_end(pos):
            raise SearchParseError(f"Missing operand after {operator.text!r}")
        return self._next_expr(lexer, pos, halt=halt)


def _symbol(token: Token) -> Expression:
    if token.kind is TokenKind.AND:
        return And()
    if token.node is not None:
        return token.node
    # Stray or/near with nothing to bind: keep the word as a search string.
    return Literal(token.text)


def _describe(expr: Expression) -> str:
    return type(expr).__name__


def strip_meta(text: str) -> QuerySpec:
    """Read the meta prefixes in front of ``text`` without parsing the rest.

    Meta prefixes are only recognized before the first other token, so
    ``subject:"release count:3"`` keeps its ``count:3``.

    Returns:
        `QuerySpec` with ``parsed`` left as None.
    """
    meta: dict[str, Any] = {}
    pos = 0
    while True:
        match = _RE_META.match(text, pos)
        if match is None:
            break
        name = match.group(1).lower()
        if name == "no-parse":
            name = "raw"
        meta[name] = _meta_value(match.group(2))
        pos = match.end()

    limit = meta.get("limit")
    return QuerySpec(
        query=text[pos:].strip(),
        thread=bool(meta.get("thread")),
        limit=limit if isinstance(limit, int) and not isinstance(limit, bool) and limit > 0 else None,
        raw=bool(meta.get("raw")),
        count=bool(meta.get("count")),
    )


def prepare_query(text: str, parser: QueryParser, *, use_parsed: bool = True) -> QuerySpec:
    """Strip leading meta prefixes from ``text`` and parse what remains.

    Args:
        text: Raw user input.
        parser: Parser used for the remaining query.
        use_parsed: When False, never parse (every engine gets raw text).

    Returns:
        Prepared `QuerySpec`.

    Raises:
        SearchParseError: If the remaining query fails to parse.
    """
    spec = strip_meta(text)
    if use_parsed and not spec.raw and spec.query:
        return replace(spec, parsed=parser.parse(spec.query))
    return spec


def _meta_value(value: str) -> Any:
    lowered = value.lower()
    if lowered == "t":
        return True
    if lowered in {"nil", "0"}:
        return False
    if value.isdigit():
        return int(value)
    return value
