"""Tests for tokenizing and parsing query strings."""

from __future__ import annotations

import sys
import unittest
from datetime import date
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from FedSearch.core.errors import SearchParseError
from FedSearch.core.query import And, DateSpec, Group, KeyValue, Literal, Near, Not, Or
from FedSearch.parsing.parser import QueryParser, prepare_query

REFERENCE = date(2024, 5, 15)


class TestQueryParser(unittest.TestCase):
    def setUp(self) -> None:
        self.parser = QueryParser(reference=REFERENCE)

    def test_words_are_implicitly_anded(self) -> None:
        self.assertEqual(self.parser.parse("foo bar"), (Literal("foo"), Literal("bar")))

    def test_quoted_string_is_one_literal(self) -> None:
        self.assertEqual(
            self.parser.parse('"foo bar" baz'),
            (Literal("foo bar"), Literal("baz")),
        )
        self.assertEqual(self.parser.parse(r'"say \"hi\""'), (Literal('say "hi"'),))

    def test_regex_keeps_slashes(self) -> None:
        (node,) = self.parser.parse("/fo+ba?r/")
        self.assertEqual(node, Literal("/fo+ba?r/"))
        self.assertTrue(node.is_regex)

    def test_key_value_with_abbreviated_key(self) -> None:
        self.assertEqual(self.parser.parse("subj:hello"), (KeyValue("subject", "hello"),))
        self.assertEqual(
            self.parser.parse('subject:"hello world"'),
            (KeyValue("subject", "hello world"),),
        )

    def test_or_is_right_associative(self) -> None:
        self.assertEqual(
            self.parser.parse("a or b or c"),
            (Or(Literal("a"), Or(Literal("b"), Literal("c"))),),
        )

    def test_keywords_are_case_insensitive(self) -> None:
        self.assertEqual(self.parser.parse("a OR b"), (Or(Literal("a"), Literal("b")),))

    def test_keyword_needs_a_boundary(self) -> None:
        self.assertEqual(self.parser.parse("orange nearby"), (Literal("orange"), Literal("nearby")))

    def test_not_binds_only_the_next_term(self) -> None:
        self.assertEqual(self.parser.parse("-foo"), (Not(Literal("foo")),))
        self.assertEqual(
            self.parser.parse("not a or b"),
            (Or(Not(Literal("a")), Literal("b")),),
        )

    def test_explicit_and_leaves_marker(self) -> None:
        self.assertEqual(
            self.parser.parse("a and b"),
            (Literal("a"), And(), Literal("b")),
        )

    def test_near_requires_literals(self) -> None:
        self.assertEqual(self.parser.parse("foo near bar"), (Near(Literal("foo"), Literal("bar")),))
        with self.assertRaisesRegex(SearchParseError, "near"):
            self.parser.parse("from:alice near bar")

    def test_group_and_group_value(self) -> None:
        self.assertEqual(
            self.parser.parse("(a or b) c"),
            (Group((Or(Literal("a"), Literal("b")),)), Literal("c")),
        )
        self.assertEqual(
            self.parser.parse("to:(alice or bob)"),
            (KeyValue("to", Group((Or(Literal("alice"), Literal("bob")),))),),
        )

    def test_escaped_and_leading_colon_stay_literal(self) -> None:
        self.assertEqual(self.parser.parse(r"foo\:bar"), (Literal("foo:bar"),))
        self.assertEqual(self.parser.parse(":foo"), (Literal(":foo"),))

    def test_stray_keyword_becomes_literal(self) -> None:
        self.assertEqual(self.parser.parse("or"), (Literal("or"),))

    def test_reductions(self) -> None:
        self.assertEqual(
            self.parser.parse("address:bob"),
            (Or(KeyValue("sender", "bob"), KeyValue("recipient", "bob")),),
        )
        self.assertEqual(self.parser.parse("mark:!"), (KeyValue("mark", "flagged"),))
        self.assertEqual(self.parser.parse("message-id:<a@b>"), (KeyValue("id", "<a@b>"),))
        self.assertEqual(
            self.parser.parse("after:2020-03-05"),
            (KeyValue("since", DateSpec(5, 3, 2020)),),
        )

    def test_malformed_input_raises(self) -> None:
        for text in ('"unterminated', "(a b", "a )", "a or", "-", "/open"):
            with self.subTest(text=text):
                with self.assertRaises(SearchParseError):
                    self.parser.parse(text)

    def test_ambiguous_key_raises(self) -> None:
        with self.assertRaisesRegex(SearchParseError, "Ambiguous"):
            self.parser.parse("s:foo")


class TestPrepareQuery(unittest.TestCase):
    def setUp(self) -> None:
        self.parser = QueryParser(reference=REFERENCE)

    def test_meta_prefixes_are_removed(self) -> None:
        spec = prepare_query("thread:t limit:5 count:t from:alice", self.parser)
        self.assertEqual(spec.query, "from:alice")
        self.assertTrue(spec.thread)
        self.assertTrue(spec.count)
        self.assertEqual(spec.limit, 5)
        self.assertEqual(spec.parsed, (KeyValue("from", "alice"),))

    def test_raw_skips_parsing(self) -> None:
        for prefix in ("raw:t", "no-parse:t"):
            with self.subTest(prefix=prefix):
                spec = prepare_query(f"{prefix} subj:(unbalanced", self.parser)
                self.assertTrue(spec.raw)
                self.assertIsNone(spec.parsed)
                self.assertEqual(spec.query, "subj:(unbalanced")

    def test_false_values(self) -> None:
        spec = prepare_query("thread:nil limit:0 foo", self.parser)
        self.assertFalse(spec.thread)
        self.assertIsNone(spec.limit)

    def test_parsing_can_be_disabled(self) -> None:
        spec = prepare_query("from:alice", self.parser, use_parsed=False)
        self.assertIsNone(spec.parsed)
        self.assertFalse(spec.raw)

    def test_meta_words_inside_the_query_are_search_text(self) -> None:
        spec = prepare_query('subject:"release count:3"', self.parser)
        self.assertFalse(spec.count)
        self.assertEqual(spec.query, 'subject:"release count:3"')
        self.assertEqual(spec.parsed, (KeyValue("subject", "release count:3"),))

        spec = prepare_query("limit:2 foo thread:t", self.parser)
        self.assertEqual(spec.limit, 2)
        self.assertFalse(spec.thread)
        self.assertEqual(spec.query, "foo thread:t")

    def test_inner_spacing_is_kept(self) -> None:
        spec = prepare_query('  subject:"a  b"  ', self.parser)
        self.assertEqual(spec.query, 'subject:"a  b"')
        self.assertEqual(spec.parsed, (KeyValue("subject", "a  b"),))


if __name__ == "__main__":
    unittest.main()
