"""Tests for IMAP SEARCH compilation."""

from __future__ import annotations

import sys
import unittest
from datetime import date
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from FedSearch.core.query import DateSpec, KeyValue
from FedSearch.engines.imap.query import compile_imap_query, handle_date, handle_flag, handle_size, handle_string
from FedSearch.parsing.parser import QueryParser


def _imap(text: str, *, fuzzy: bool = False) -> str:
    return compile_imap_query(QueryParser().parse(text), fuzzy=fuzzy)


class TestImapQuery(unittest.TestCase):
    def test_text_and_known_keys(self) -> None:
        self.assertEqual(_imap("foo"), "TEXT foo")
        self.assertEqual(_imap("subject:hello"), "SUBJECT hello")
        self.assertEqual(_imap("from:alice to:bob"), "FROM alice TO bob")

    def test_or_is_prefix_notation(self) -> None:
        self.assertEqual(_imap("a or b"), "OR TEXT a TEXT b")
        self.assertEqual(_imap("a or b or c"), "OR TEXT a (OR TEXT b TEXT c)")
        self.assertEqual(_imap("a near b"), "OR TEXT a TEXT b")

    def test_recipient_and_address(self) -> None:
        self.assertEqual(_imap("recipient:bob"), "OR TO bob (OR CC bob BCC bob)")
        self.assertEqual(_imap("address:bob"), "OR FROM bob OR TO bob (OR CC bob BCC bob)")

    def test_marks(self) -> None:
        self.assertEqual(_imap("mark:!"), "FLAGGED")
        self.assertEqual(_imap("-mark:R"), "UNSEEN")
        self.assertEqual(_imap("-mark:new"), "OLD")
        self.assertEqual(_imap("mark:new"), "NEW")
        self.assertEqual(_imap("mark:bogus"), "ALL")

    def test_not(self) -> None:
        self.assertEqual(_imap("-subject:x"), "NOT SUBJECT x")
        self.assertEqual(_imap("-(a or b)"), "NOT (OR TEXT a TEXT b)")

    def test_renames_and_headers(self) -> None:
        self.assertEqual(_imap("sender:alice"), "FROM alice")
        self.assertEqual(_imap("tag:work"), "KEYWORD work")
        self.assertEqual(_imap("list-id:python"), "HEADER list-id python")

    def test_sizes(self) -> None:
        self.assertEqual(_imap("larger:10k"), "LARGER 10240")
        self.assertEqual(_imap("smaller:2m"), "SMALLER 2097152")

    def test_dates(self) -> None:
        self.assertEqual(_imap("since:2020-03-05"), "SINCE 5-Mar-2020")
        self.assertEqual(_imap("date:2020-03-05"), "ON 5-Mar-2020")
        self.assertEqual(_imap("before:whenever"), "ALL")

    def test_quoting(self) -> None:
        self.assertEqual(_imap('subject:"hello world"'), 'SUBJECT "hello world"')
        self.assertEqual(_imap("subject:café"), 'SUBJECT "café"')

    def test_regex_literal_is_dropped(self) -> None:
        self.assertEqual(_imap("/re/ foo"), "TEXT foo")

    def test_wildcards(self) -> None:
        self.assertEqual(_imap("subject:foo*"), "SUBJECT foo")
        self.assertEqual(_imap("subject:foo*", fuzzy=True), "FUZZY SUBJECT foo")


class TestImapValueHelpers(unittest.TestCase):
    def test_handle_date_fills_and_moves_back(self) -> None:
        today = date(2024, 5, 15)
        self.assertEqual(handle_date(DateSpec(5, 3, 2020), today), "5-Mar-2020")
        self.assertEqual(handle_date(DateSpec(None, 6, None), today), "1-Jun-2023")
        self.assertEqual(handle_date(DateSpec(20, None, None), today), "20-Apr-2024")
        self.assertEqual(handle_date(DateSpec(31, 2, 2023), today), "28-Feb-2023")

    def test_handle_date_keeps_the_stated_day(self) -> None:
        today = date(2026, 3, 5)
        self.assertEqual(handle_date(DateSpec(31, None, None), today), "31-Jan-2026")
        self.assertEqual(handle_date(DateSpec(29, 2, None), today), "29-Feb-2024")
        self.assertEqual(handle_date(DateSpec(30, None, None), date(2026, 3, 30)), "30-Mar-2026")

    def test_compile_resolves_dates_against_given_day(self) -> None:
        query = (KeyValue("since", DateSpec(31, None, None)), KeyValue("before", DateSpec(None, 12, None)))
        self.assertEqual(
            compile_imap_query(query, today=date(2026, 3, 5)),
            "SINCE 31-Jan-2026 BEFORE 1-Dec-2025",
        )

    def test_handle_flag(self) -> None:
        self.assertEqual(handle_flag("read"), "SEEN")
        self.assertEqual(handle_flag("replied"), "ANSWERED")
        self.assertEqual(handle_flag("draft"), "DRAFT")
        self.assertIsNone(handle_flag("bogus"))

    def test_handle_size(self) -> None:
        self.assertEqual(handle_size("100"), "100")
        self.assertEqual(handle_size("1.5k"), "1536")
        self.assertIsNone(handle_size("big"))

    def test_handle_string(self) -> None:
        self.assertEqual(handle_string("plain"), "plain")
        self.assertEqual(handle_string('a"b'), '"a\\"b"')
        self.assertEqual(handle_string(""), '""')


if __name__ == "__main__":
    unittest.main()
