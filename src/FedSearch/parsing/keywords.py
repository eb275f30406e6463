"""Search keyword vocabulary and abbreviation expansion.

Users may abbreviate keys (``subj:foo``) and hyphenated keys segment by
segment (``c-f:alice`` for ``contact-from``).
"""

from __future__ import annotations

from typing import Iterable, Sequence

from FedSearch.core.errors import SearchParseError

DEFAULT_EXPANDABLE_KEYS: tuple[str, ...] = (
    "from",
    "subject",
    "to",
    "cc",
    "bcc",
    "body",
    "recipient",
    "date",
    "mark",
    "before",
    "after",
    "larger",
    "smaller",
    "attachment",
    "text",
    "since",
    "thread",
    "sender",
    "address",
    "tag",
    "size",
    "grep",
    "limit",
    "raw",
    "message-id",
    "id",
    "contact",
    "contact-from",
    "contact-to",
)

DEFAULT_DATE_KEYS: tuple[str, ...] = (
    "date",
    "before",
    "after",
    "on",
    "senton",
    "sentbefore",
    "sentsince",
    "since",
)


def expand_key(key: str, vocabulary: Sequence[str] = DEFAULT_EXPANDABLE_KEYS) -> str:
    """Expand an abbreviated search key against ``vocabulary``.

    Each hyphen-separated segment of ``key`` must be a prefix of the matching
    segment of a vocabulary entry with the same number of segments.

    Args:
        key: Key as typed by the user (case-insensitive).
        vocabulary: Full keyword names.

    Returns:
        The completed key, or ``key`` unchanged when nothing completes it.

    Raises:
        SearchParseError: If the abbreviation completes to several keywords
            and none of them is a unique shortest prefix of the rest.
    """
    typed = key.strip().lower()
    if typed in vocabulary:
        return typed

    candidates = _completions(typed, vocabulary)
    if not candidates:
        return typed
    if len(candidates) == 1:
        return candidates[0]

    shortest = min(candidates, key=len)
    others = [c for c in candidates if c != shortest]
    if all(len(c) > len(shortest) and c.startswith(shortest) for c in others):
        return shortest
    raise SearchParseError(f"Ambiguous keyword: {key} (could be {', '.join(sorted(candidates))})")


def _completions(typed: str, vocabulary: Iterable[str]) -> list[str]:
    segments = typed.split("-")
    out: list[str] = []
    for word in vocabulary:
        parts = word.split("-")
        if len(parts) != len(segments):
            continue
        if all(part.startswith(seg) for seg, part in zip(segments, parts)):
            out.append(word)
    return out
