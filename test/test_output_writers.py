"""Tests for console and JSON output writers."""

from __future__ import annotations

import json
import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from FedSearch.config import parse_config_dict
from FedSearch.core.models import Match, SearchOutcome
from FedSearch.core.query import QuerySpec
from FedSearch.renderers import JsonFileWriter, MultiOutputWriter, create_output_writer, render_json, render_text


def _outcome(**kwargs) -> SearchOutcome:
    return SearchOutcome(
        spec=QuerySpec("from:alice", limit=2, count=True),
        matches=(Match("mail:inbox", 12, 100.0), Match("news:comp.lang.python", 7, 30.5)),
        **kwargs,
    )


class TestRenderText(unittest.TestCase):
    def test_lines_counts_and_failures(self) -> None:
        text = render_text(_outcome(failed_servers=("work",), counts={"mail:inbox": 3, "news:comp.lang.python": 1}))
        self.assertEqual(
            text.splitlines(),
            [
                "1. mail:inbox 12 (score 100)",
                "2. news:comp.lang.python 7 (score 30.5)",
                "--- Counts ---",
                "mail:inbox: 3",
                "news:comp.lang.python: 1",
                "Failed servers: work",
            ],
        )

    def test_no_matches(self) -> None:
        outcome = SearchOutcome(spec=QuerySpec("nothing"), matches=())
        self.assertEqual(render_text(outcome), "No matches\n")


class TestJsonWriter(unittest.TestCase):
    def test_render_json(self) -> None:
        payload = render_json(_outcome())
        self.assertEqual(payload["query"], "from:alice")
        self.assertEqual(payload["meta"], {"thread": False, "limit": 2, "raw": False, "count": True})
        self.assertEqual(payload["matches"][1], {"collection": "news:comp.lang.python", "id": 7, "score": 30.5})
        self.assertNotIn("counts", payload)

    def test_finalize_writes_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            writer = JsonFileWriter(tmp)
            writer.write_outcome(_outcome(counts={"mail:inbox": 1}))
            writer.finalize("search")

            files = list((Path(tmp) / "json").glob("search_*.json"))
            self.assertEqual(len(files), 1)
            data = json.loads(files[0].read_text(encoding="utf-8"))

        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]["counts"], {"mail:inbox": 1})

    def test_factory_follows_formats(self) -> None:
        cfg = parse_config_dict({"output": {"base_dir": "out", "formats": ["console", "json"]}})
        writer = create_output_writer(cfg)
        self.assertIsInstance(writer, MultiOutputWriter)
        self.assertEqual([type(w).__name__ for w in writer.writers], ["ConsoleOutputWriter", "JsonFileWriter"])


if __name__ == "__main__":
    unittest.main()
