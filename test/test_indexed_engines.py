"""Tests for local index engine query rendering and command lines."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from FedSearch.config import EngineConfig
from FedSearch.core.query import QuerySpec
from FedSearch.engines.indexed import findgrep, mairix, namazu, notmuch, swish
from FedSearch.engines.transform import transform
from FedSearch.parsing.parser import QueryParser


def _render(kind: str, text: str) -> str:
    return transform(kind, QueryParser().parse(text))


class TestNotmuch(unittest.TestCase):
    def test_fields_and_renames(self) -> None:
        self.assertEqual(_render("notmuch", "from:alice subject:hi"), "from:alice subject:hi")
        self.assertEqual(_render("notmuch", "sender:bob"), "from:bob")
        self.assertEqual(_render("notmuch", "recipient:bob"), "to:bob")
        self.assertEqual(_render("notmuch", "mark:flagged"), "tag:flagged")
        self.assertEqual(_render("notmuch", "address:bob"), "from:bob or to:bob")

    def test_body_id_and_quoting(self) -> None:
        self.assertEqual(_render("notmuch", "body:hello"), "hello")
        self.assertEqual(_render("notmuch", 'body:"two words"'), '"two words"')
        self.assertEqual(_render("notmuch", "message-id:<abc@x>"), "id:abc@x")
        self.assertEqual(_render("notmuch", 'subject:"two words"'), 'subject:"two words"')

    def test_near_is_kept(self) -> None:
        self.assertEqual(_render("notmuch", "a near b"), "a near b")

    def test_dates(self) -> None:
        self.assertEqual(_render("notmuch", "date:2020-03-05"), "date:2020-03-05")
        self.assertEqual(_render("notmuch", "before:2020-03-05"), "date:..2020-03-05")
        self.assertEqual(_render("notmuch", "since:2020-03-05"), "date:2020-03-05..")
        self.assertEqual(_render("notmuch", "since:march"), "date:mar..")
        self.assertEqual(_render("notmuch", "before:whenever"), "date:..whenever")

    def test_unknown_keys_are_dropped(self) -> None:
        self.assertEqual(_render("notmuch", "cc:bob subject:x"), "subject:x")
        self.assertEqual(_render("notmuch", "larger:10k"), "")
        self.assertEqual(_render("notmuch", "-from:alice"), "not from:alice")

    def test_command_line(self) -> None:
        config = EngineConfig(kind="notmuch", config_file="/tmp/nm", switches=("--sort=newest-first",))
        self.assertEqual(
            notmuch.build_argv(config, "notmuch", "from:alice", QuerySpec("from:alice", limit=10), ()),
            [
                "notmuch",
                "--config=/tmp/nm",
                "search",
                "--output=files",
                "--duplicate=1",
                "--limit=10",
                "--sort=newest-first",
                "from:alice",
            ],
        )
        threaded = notmuch.build_argv(EngineConfig(kind="notmuch"), "nm", "x", QuerySpec("x", thread=True), ())
        self.assertEqual(threaded, ["nm", "search", "--output=files", "x"])


class TestMairix(unittest.TestCase):
    def test_literals_and_keys(self) -> None:
        self.assertEqual(_render("mairix", "foo"), "bs:foo")
        self.assertEqual(_render("mairix", '"foo bar"'), "bs:foo bs:bar")
        self.assertEqual(_render("mairix", "from:alice"), "f:alice")
        self.assertEqual(_render("mairix", "recipient:bob"), "tc:bob")

    def test_or_on_same_key_becomes_alternatives(self) -> None:
        self.assertEqual(_render("mairix", "subject:a or subject:b"), "s:a/b")
        self.assertEqual(_render("mairix", "a or b or c"), "bs:a/b/c")

    def test_or_across_keys_degrades_to_and(self) -> None:
        self.assertEqual(_render("mairix", "from:alice or subject:b"), "f:alice s:b")

    def test_or_of_dates_keeps_one_side(self) -> None:
        self.assertEqual(_render("mairix", "since:2020-01-01 or before:2019-01-01"), "d:20200101-")

    def test_not(self) -> None:
        self.assertEqual(_render("mairix", "-subject:foo"), "s:~foo")
        self.assertEqual(_render("mairix", "-mark:!"), "F:-f")
        self.assertEqual(_render("mairix", "-(a b)"), "")

    def test_dates_sizes_and_marks(self) -> None:
        self.assertEqual(_render("mairix", "since:2020-03-05"), "d:20200305-")
        self.assertEqual(_render("mairix", "before:2020-03-05"), "d:-20200305")
        self.assertEqual(_render("mairix", "date:march"), "d:mar")
        self.assertEqual(_render("mairix", "smaller:10k"), "z:-10k")
        self.assertEqual(_render("mairix", "larger:1m"), "z:1m-")
        self.assertEqual(_render("mairix", "mark:R"), "F:s")

    def test_unsupported_values_are_dropped(self) -> None:
        self.assertEqual(_render("mairix", "subject:/re/ tag:x"), "")
        self.assertEqual(_render("mairix", "(from:a subject:b)"), "f:a s:b")

    def test_command_line(self) -> None:
        config = EngineConfig(kind="mairix", config_file="/home/u/.mairixrc")
        self.assertEqual(
            mairix.build_argv(config, "mairix", "f:alice s:hi", QuerySpec("x", thread=True), ()),
            ["mairix", "-f", "/home/u/.mairixrc", "-r", "-t", "f:alice", "s:hi"],
        )


class TestNamazu(unittest.TestCase):
    def test_fields(self) -> None:
        self.assertEqual(_render("namazu", "from:alice"), "+from:alice")
        self.assertEqual(_render("namazu", "body:hello"), "+body:hello")
        self.assertEqual(_render("namazu", "message-id:<a@b>"), "+message-id:<a@b>")
        self.assertEqual(_render("namazu", 'subject:"x y"'), '+subject:"x y"')
        self.assertEqual(_render("namazu", "tag:x"), "")

    def test_operators(self) -> None:
        self.assertEqual(_render("namazu", "a near b"), "a or b")
        self.assertEqual(_render("namazu", "-foo"), "not foo")

    def test_command_line(self) -> None:
        config = EngineConfig(kind="namazu", index_dir="/var/lib/namazu/mail")
        self.assertEqual(
            namazu.build_argv(config, "namazu", "+from:alice", QuerySpec("x"), ()),
            ["namazu", "-q", "-a", "-s", "+from:alice", "/var/lib/namazu/mail"],
        )


class TestSwish(unittest.TestCase):
    def test_field_syntax(self) -> None:
        self.assertEqual(_render("swish-e", "from:alice subject:hi"), "from=alice subject=hi")
        self.assertEqual(_render("swish++", "from:alice subject:hi"), "from = alice subject = hi")
        self.assertEqual(_render("swish-e", "a near b"), "a near b")
        self.assertEqual(_render("swish++", "date:2020 cc:x"), "")

    def test_command_lines(self) -> None:
        swish_e = EngineConfig(kind="swish-e", index_dir="/idx/mail.swish", switches=("-m", "50"))
        self.assertEqual(
            swish.build_swish_e_argv(swish_e, "swish-e", "from=alice", QuerySpec("x"), ()),
            ["swish-e", "-f", "/idx/mail.swish", "-m", "50", "-w", "from=alice"],
        )
        swish_plus = EngineConfig(kind="swish++", config_file="/etc/swish++.conf")
        self.assertEqual(
            swish.build_swish_plus_argv(swish_plus, "search", "from = alice", QuerySpec("x"), ()),
            ["search", "--config-file=/etc/swish++.conf", "from = alice"],
        )


class TestFindGrep(unittest.TestCase):
    def test_only_free_text_survives(self) -> None:
        self.assertEqual(_render("find-grep", "foo bar"), "foo bar")
        self.assertEqual(_render("find-grep", "body:hello subject:x"), "hello")
        self.assertEqual(_render("find-grep", "/fo+/"), "fo+")
        self.assertEqual(_render("find-grep", "foo or bar"), "")
        self.assertEqual(_render("find-grep", "-foo"), "")

    def test_command_line_searches_collection_directories(self) -> None:
        config = EngineConfig(kind="find-grep", remove_prefix="/var/spool/news")
        self.assertEqual(
            findgrep.build_argv(config, "find", "hello", QuerySpec("hello"), ("comp.lang.python",)),
            [
                "find",
                "/var/spool/news/comp/lang/python",
                "-type",
                "f",
                "-name",
                "[0-9]*",
                "-exec",
                "grep",
                "-l",
                "-e",
                "hello",
                "{}",
                "+",
            ],
        )


if __name__ == "__main__":
    unittest.main()
