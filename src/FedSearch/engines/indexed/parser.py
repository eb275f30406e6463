"""Turn index-engine output into `Match` objects.

Engines print file paths. A path below the server's ``remove_prefix`` is
split into a group name (its directory) and an item (its file name):

    /home/u/Mail/.lists.python/cur/1234  ->  group "lists.python", id 1234

Directory separators become dots, a leading dot is removed, and a trailing
maildir ``cur``/``new``/``tmp`` directory is dropped. Numeric file names are
item ids; other names need an ``article_resolver``.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Sequence
from typing import Optional

from FedSearch.core.models import Match
from FedSearch.utils.log import log

ArticleResolver = Callable[[str, str], Optional[int]]
Extractor = Callable[[Sequence[str]], Iterable[tuple[str, float]]]

DEFAULT_SCORE = 100.0
_MAILDIR_SUBDIRS = frozenset({"cur", "new", "tmp"})


def extract_paths(lines: Sequence[str]) -> Iterable[tuple[str, float]]:
    """Extractor for engines that print one file path per line."""
    for line in lines:
        path = line.strip()
        if path:
            yield path, DEFAULT_SCORE


def normalize_prefix(prefix: Optional[str]) -> str:
    """Expand ``~`` and make ``prefix`` an absolute directory ending in a separator."""
    if not prefix:
        return ""
    expanded = os.path.abspath(os.path.expanduser(prefix))
    return expanded if expanded.endswith(os.sep) else expanded + os.sep


def split_path(path: str, prefix: str) -> Optional[tuple[str, str]]:
    """Split a result path into ``(group, base name)``.

    Returns:
        None if ``path`` does not lie below ``prefix``.
    """
    if prefix:
        if not path.startswith(prefix):
            return None
        path = path[len(prefix) :]
    directory, base = os.path.split(path)
    segments = [segment for segment in directory.split(os.sep) if segment]
    if segments and segments[-1] in _MAILDIR_SUBDIRS:
        segments.pop()
    group = ".".join(segments)
    if group.startswith("."):
        group = group[1:]
    return group, base


def group_directory(prefix: str, group: str) -> str:
    """Inverse of `split_path` for the directory part: group name -> directory."""
    return os.path.join(prefix or os.sep, *group.split("."))


def massage_output(
    hits: Iterable[tuple[str, float]],
    *,
    server: str,
    remove_prefix: Optional[str],
    collections: Sequence[str] = (),
    article_resolver: Optional[ArticleResolver] = None,
) -> list[Match]:
    """Convert ``(path, score)`` pairs into matches for ``server``.

    Args:
        hits: Extracted paths and scores in engine order.
        server: Server name used for the collection prefix.
        remove_prefix: Directory stripped from every path.
        collections: Group names to keep; empty keeps every group.
        article_resolver: Maps ``(group, base name)`` to an id for
            non-numeric file names (maildir).

    Returns:
        Matches in engine order.
    """
    prefix = normalize_prefix(remove_prefix)
    wanted = set(collections)
    matches: list[Match] = []
    skipped = 0
    for path, score in hits:
        parts = split_path(path, prefix)
        if parts is None:
            skipped += 1
            log.debug("Result outside %s skipped: %s", prefix, path)
            continue
        group, base = parts
        if wanted and group not in wanted:
            continue
        item_id = _item_id(group, base, article_resolver)
        if item_id is None:
            skipped += 1
            continue
        matches.append(Match(collection=f"{server}:{group}", item_id=item_id, score=max(0.0, float(score))))
    if skipped:
        log.warning("Skipped %d unusable result lines for server %s", skipped, server)
    return matches


def _item_id(group: str, base: str, resolver: Optional[ArticleResolver]) -> Optional[int]:
    if base.isdigit():
        return int(base)
    if resolver is None:
        return None
    return resolver(group, base)
