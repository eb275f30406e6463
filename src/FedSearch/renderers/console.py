"""Console text output.

Renders a `SearchOutcome` as one line per match, written through the logger.
"""

from __future__ import annotations

from FedSearch.core.models import SearchOutcome
from FedSearch.renderers.base import OutputWriter
from FedSearch.utils.log import log


def render_text(outcome: SearchOutcome) -> str:
    """Render matches (and counts, when requested) as a text block.

    Example::

        1. mail:lists.python 1234 (score 100)
    """
    lines: list[str] = []
    for idx, match in enumerate(outcome.matches, start=1):
        lines.append(f"{idx}. {match.collection} {match.item_id} (score {match.score:g})")
    if not outcome.matches:
        lines.append("No matches")
    if outcome.counts:
        lines.append("--- Counts ---")
        for collection, count in sorted(outcome.counts.items()):
            lines.append(f"{collection}: {count}")
    if outcome.failed_servers:
        lines.append(f"Failed servers: {', '.join(outcome.failed_servers)}")
    return "\n".join(lines) + "\n"


class ConsoleOutputWriter(OutputWriter):
    """Write results to console via logging."""

    def write_outcome(self, outcome: SearchOutcome) -> None:
        for line in render_text(outcome).splitlines():
            log.info(line)

    def finalize(self, action: str) -> None:
        """No-op for console output."""
