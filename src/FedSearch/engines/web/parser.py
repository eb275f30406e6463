"""NOV (overview) response parser.

Each line is a tab-separated overview record. Extra header fields carry the
cross-reference and the score::

    0<TAB>subject<TAB>from<TAB>date<TAB>id<TAB>refs<TAB>bytes<TAB>lines<TAB>Xref: host grp:12<TAB>X-Score: 30
"""

from __future__ import annotations

from typing import Iterator, Optional, Sequence

from FedSearch.core.models import Match
from FedSearch.utils.log import log


def parse_nov(text: str, *, server: str, collections: Sequence[str] = ()) -> Iterator[Match]:
    """Yield one match per ``group:number`` cross-reference.

    Args:
        text: Response body.
        server: Server name used as collection prefix.
        collections: Groups to keep; empty keeps all.
    """
    wanted = set(collections)
    for line in text.splitlines():
        if not line.strip():
            continue
        fields = line.split("\t")
        xref = _header(fields, "xref")
        if xref is None:
            log.debug("NOV line without Xref skipped: %s", line[:80])
            continue
        score = _score(_header(fields, "x-score"))
        # First Xref token is the host name.
        for ref in xref.split()[1:]:
            group, _, number = ref.rpartition(":")
            if not group or not number.isdigit():
                continue
            if wanted and group not in wanted:
                continue
            yield Match(collection=f"{server}:{group}", item_id=int(number), score=score)


def _header(fields: Sequence[str], name: str) -> Optional[str]:
    prefix = name + ":"
    for field in fields:
        if field[: len(prefix)].lower() == prefix:
            return field[len(prefix) :].strip()
    return None


def _score(value: Optional[str]) -> float:
    if not value:
        return 0.0
    try:
        return max(0.0, float(value))
    except ValueError:
        return 0.0
