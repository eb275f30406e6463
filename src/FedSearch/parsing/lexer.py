"""Query tokenizer.

Scans an immutable query string with an explicit cursor. Each call to
`QueryLexer.next_token` returns the token at the cursor and the position
right after it, so callers can peek simply by discarding the new position.

Recognized forms, in priority order:

- ``-`` negation
- ``( ... )`` groups, parsed as a nested query
- ``and`` / ``or`` / ``not`` / ``near`` keywords
- ``"quoted strings"``, ``/regexes/`` and plain words
- ``key:value`` pairs
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from FedSearch.core.errors import SearchParseError
from FedSearch.core.query import Expression, Group, Literal, Query

_RE_KEYWORD = re.compile(r"(and|or|not|near)(?=[\s()]|$)", re.IGNORECASE)
_RE_WS = re.compile(r"\s*")
_RE_WORD_END = re.compile(r"\s|$")


class TokenKind(Enum):
    NOT = "not"
    AND = "and"
    OR = "or"
    NEAR = "near"
    STRING = "string"
    GROUP = "group"
    KEY_VALUE = "key_value"


@dataclass(frozen=True, slots=True)
class Token:
    """One lexical unit.

    Attributes:
        kind: Token kind.
        text: Source text the token was read from.
        node: Reduced expression for STRING/GROUP/KEY_VALUE tokens.
    """

    kind: TokenKind
    text: str
    node: Optional[Expression] = None


GroupParser = Callable[[str], Query]
PairReducer = Callable[[str, "str | Group"], Expression]
KeyExpander = Callable[[str], str]


@dataclass(frozen=True, slots=True)
class QueryLexer:
    """Tokenizer bound to one input string.

    Attributes:
        text: Full query text.
        parse_group: Parses the inner text of a parenthesized group.
        expand_key: Keyword expansion for the key part of ``key:value``.
        reduce_pair: Turns an expanded key and its value into a node.
    """

    text: str
    parse_group: GroupParser
    expand_key: KeyExpander
    reduce_pair: PairReducer

    def skip_ws(self, pos: int) -> int:
        return _RE_WS.match(self.text, pos).end()

    def at_end(self, pos: int) -> bool:
        return self.skip_ws(pos) >= len(self.text)

    def next_token(self, pos: int, count: int = 1) -> tuple[Optional[Token], int]:
        """Return the token at ``pos`` and the position after it.

        Args:
            pos: Cursor position.
            count: When greater than one, skip ``count - 1`` tokens first.

        Returns:
            (token, new position); token is None at end of input.
        """
        token: Optional[Token] = None
        for _ in range(max(1, count)):
            token, pos = self._scan(pos)
            if token is None:
                break
        return token, pos

    def _scan(self, pos: int) -> tuple[Optional[Token], int]:
        text = self.text
        pos = self.skip_ws(pos)
        if pos >= len(text):
            return None, pos

        char = text[pos]
        if char == "-":
            return Token(TokenKind.NOT, "-"), pos + 1

        if char == "(":
            end = find_closing_paren(text, pos)
            inner = text[pos + 1 : end]
            return Token(TokenKind.GROUP, text[pos : end + 1], Group(self.parse_group(inner))), end + 1
        if char == ")":
            raise SearchParseError(f"Unmatched ) at position {pos} in query")

        keyword = _RE_KEYWORD.match(text, pos)
        if keyword:
            kind = TokenKind(keyword.group(1).lower())
            return Token(kind, keyword.group(0)), keyword.end()

        if char in "\"/":
            literal, end = read_delimited(text, pos)
            return Token(TokenKind.STRING, text[pos:end], Literal(literal)), end

        word_end = _RE_WORD_END.search(text, pos).start()
        colon = find_unescaped(text, ":", pos, word_end)
        if colon is None or colon == pos:
            word = text[pos:word_end]
            return Token(TokenKind.STRING, word, Literal(word.replace("\\:", ":"))), word_end

        key = self.expand_key(text[pos:colon].replace("\\:", ":"))
        value, end = self._read_value(colon + 1)
        return Token(TokenKind.KEY_VALUE, text[pos:end], self.reduce_pair(key, value)), end

    def _read_value(self, pos: int) -> tuple["str | Group", int]:
        text = self.text
        if pos >= len(text) or text[pos].isspace():
            return "", pos
        if text[pos] == '"':
            return read_delimited(text, pos)
        if text[pos] == "(":
            end = find_closing_paren(text, pos)
            return Group(self.parse_group(text[pos + 1 : end])), end + 1
        end = _RE_WORD_END.search(text, pos).start()
        return text[pos:end], end


def read_delimited(text: str, pos: int) -> tuple[str, int]:
    """Read a ``"..."`` or ``/.../`` string starting at ``pos``.

    Double quotes are removed and ``\\"`` is unescaped; regex slashes are kept.

    Returns:
        (string value, position after the closing delimiter).

    Raises:
        SearchParseError: If the closing delimiter is missing.
    """
    delimiter = text[pos]
    end = find_unescaped(text, delimiter, pos + 1, len(text))
    if end is None:
        raise SearchParseError(f"Unmatched delimited input with {delimiter} in query")
    if delimiter == "/":
        return text[pos : end + 1], end + 1
    return text[pos + 1 : end].replace('\\"', '"'), end + 1


def find_unescaped(text: str, char: str, start: int, stop: int) -> Optional[int]:
    """Index of the first ``char`` in ``text[start:stop]`` not preceded by a backslash."""
    idx = start
    while idx < stop:
        if text[idx] == "\\":
            idx += 2
            continue
        if text[idx] == char:
            return idx
        idx += 1
    return None


def find_closing_paren(text: str, pos: int) -> int:
    """Index of the ``)`` matching the ``(`` at ``pos``, skipping quoted text."""
    depth = 0
    idx = pos
    while idx < len(text):
        char = text[idx]
        if char == "\\":
            idx += 2
            continue
        if char == '"':
            closing = find_unescaped(text, '"', idx + 1, len(text))
            if closing is None:
                raise SearchParseError('Unmatched delimited input with " in query')
            idx = closing + 1
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return idx
        idx += 1
    raise SearchParseError("Unmatched delimited input with ) in query")
