"""JSON output.

Accumulates outcomes and writes them to ``<base_dir>/json/<action>_<ts>.json``.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from FedSearch.core.models import SearchOutcome
from FedSearch.renderers.base import OutputWriter
from FedSearch.utils.log import log


def render_json(outcome: SearchOutcome) -> dict[str, Any]:
    """Render one outcome into a JSON-serializable dict."""
    spec = outcome.spec
    payload: dict[str, Any] = {
        "query": spec.query,
        "meta": {"thread": spec.thread, "limit": spec.limit, "raw": spec.raw, "count": spec.count},
        "matches": [
            {"collection": match.collection, "id": match.item_id, "score": match.score} for match in outcome.matches
        ],
        "failed_servers": list(outcome.failed_servers),
    }
    if outcome.counts:
        payload["counts"] = dict(outcome.counts)
    return payload


class JsonFileWriter(OutputWriter):
    """Accumulate results and write to JSON file on finalize."""

    def __init__(self, base_dir: str) -> None:
        self.output_dir = Path(base_dir) / "json"
        self.all_results: list[dict[str, Any]] = []

    def write_outcome(self, outcome: SearchOutcome) -> None:
        self.all_results.append(render_json(outcome))

    def finalize(self, action: str) -> None:
        """Write accumulated results to ``<action>_<timestamp>.json``."""
        payload = json.dumps(self.all_results, ensure_ascii=False, indent=2)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = self.output_dir / f"{action}_{timestamp}.json"
        output_path.write_text(payload, encoding="utf-8")
        log.info("JSON saved to %s", output_path)
