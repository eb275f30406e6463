"""Tests for search keyword abbreviation expansion."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from FedSearch.core.errors import SearchParseError
from FedSearch.parsing.keywords import expand_key


class TestExpandKey(unittest.TestCase):
    def test_unique_prefix_expands(self) -> None:
        self.assertEqual(expand_key("subj"), "subject")
        self.assertEqual(expand_key("fr"), "from")
        self.assertEqual(expand_key("rec"), "recipient")
        self.assertEqual(expand_key("att"), "attachment")

    def test_exact_entry_is_idempotent(self) -> None:
        for key in ("to", "id", "from", "message-id", "contact-from"):
            self.assertEqual(expand_key(key), key)

    def test_hyphenated_keys_expand_per_segment(self) -> None:
        self.assertEqual(expand_key("c-f"), "contact-from")
        self.assertEqual(expand_key("cont-t"), "contact-to")
        self.assertEqual(expand_key("m-i"), "message-id")

    def test_segment_count_must_match(self) -> None:
        self.assertEqual(expand_key("m"), "mark")

    def test_ambiguous_prefix_raises(self) -> None:
        with self.assertRaisesRegex(SearchParseError, "Ambiguous keyword: s"):
            expand_key("s")
        with self.assertRaises(SearchParseError):
            expand_key("si")

    def test_unique_shortest_prefix_wins(self) -> None:
        self.assertEqual(expand_key("t", ["to", "tour", "total"]), "to")

    def test_unknown_key_is_returned_unchanged(self) -> None:
        self.assertEqual(expand_key("list-id"), "list-id")
        self.assertEqual(expand_key("xyzzy"), "xyzzy")

    def test_key_is_case_insensitive(self) -> None:
        self.assertEqual(expand_key("SUBJ"), "subject")


if __name__ == "__main__":
    unittest.main()
