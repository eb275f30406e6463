"""Tests for layered config parsing and validation."""

import sys
import tempfile
import unittest
from copy import deepcopy
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from FedSearch.config import load_config_with_defaults, merge_config_dicts, parse_config_dict
from FedSearch.core.errors import SearchConfigError
from FedSearch.core.query import KeyValue, Or
from FedSearch.services import create_search_dispatcher


def _base_raw_config() -> dict:
    return {
        "log": {"level": "INFO", "to_file": False, "dir": "log"},
        "query": {"use_parsed_queries": True, "contacts": {"bob": ["bob@a.org", "bob@b.org"]}},
        "engines": {
            "notmuch": {"program": "notmuch", "switches": ["--sort=newest-first"], "timeout": 20},
            "imap": {"ssl": True, "fuzzy": False},
        },
        "default_engines": {"maildir": "notmuch", "imap": "imap"},
        "servers": [
            {"name": "mail", "type": "maildir", "remove_prefix": "~/Mail", "timeout": 5},
            {"name": "work", "type": "imap", "host": "imap.example.org", "fuzzy": True},
            {"name": "archive", "type": "maildir", "engine": "mairix", "config_file": "~/.mairixrc"},
        ],
        "output": {"base_dir": "output", "formats": ["console", "json"]},
    }


class TestConfigLayering(unittest.TestCase):
    def test_parse_success_nested_access(self) -> None:
        cfg = parse_config_dict(_base_raw_config())
        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual([server.name for server in cfg.servers], ["mail", "work", "archive"])
        self.assertEqual(cfg.output.formats, ("console", "json"))
        self.assertEqual(cfg.query.contacts["bob"], ("bob@a.org", "bob@b.org"))

    def test_server_settings_override_engine_defaults(self) -> None:
        cfg = parse_config_dict(_base_raw_config())

        mail = cfg.server("mail").engine
        self.assertEqual(mail.kind, "notmuch")
        self.assertEqual(mail.program, "notmuch")
        self.assertEqual(mail.switches, ("--sort=newest-first",))
        self.assertEqual(mail.remove_prefix, "~/Mail")
        self.assertEqual(mail.timeout, 5.0)

        work = cfg.server("work").engine
        self.assertEqual(work.kind, "imap")
        self.assertEqual(work.option("host"), "imap.example.org")
        self.assertIs(work.option("fuzzy"), True)
        self.assertIs(work.option("ssl"), True)

    def test_explicit_engine_wins_over_backend_default(self) -> None:
        cfg = parse_config_dict(_base_raw_config())
        archive = cfg.server("archive").engine
        self.assertEqual(archive.kind, "mairix")
        self.assertIsNone(archive.program)
        self.assertEqual(archive.config_file, "~/.mairixrc")

    def test_unresolvable_engine_error_contains_key(self) -> None:
        raw = _base_raw_config()
        raw["servers"].append({"name": "news", "type": "nntp"})
        with self.assertRaisesRegex(SearchConfigError, r"servers\[3\]\.engine"):
            parse_config_dict(raw)

    def test_unknown_engine_error_contains_key(self) -> None:
        raw = _base_raw_config()
        raw["servers"][0]["engine"] = "glimpse"
        with self.assertRaisesRegex(SearchConfigError, r"servers\.mail\.engine"):
            parse_config_dict(raw)

    def test_duplicate_server_name(self) -> None:
        raw = _base_raw_config()
        raw["servers"].append(deepcopy(raw["servers"][0]))
        with self.assertRaisesRegex(ValueError, "duplicate name: mail"):
            parse_config_dict(raw)

    def test_server_name_with_colon(self) -> None:
        raw = _base_raw_config()
        raw["servers"][0]["name"] = "mail:x"
        with self.assertRaisesRegex(ValueError, "contain no ':'"):
            parse_config_dict(raw)

    def test_missing_server_name(self) -> None:
        raw = _base_raw_config()
        del raw["servers"][0]["name"]
        with self.assertRaisesRegex(ValueError, r"servers\[0\]\.name"):
            parse_config_dict(raw)

    def test_non_positive_timeout(self) -> None:
        raw = _base_raw_config()
        raw["servers"][0]["timeout"] = 0
        with self.assertRaisesRegex(ValueError, r"servers\.mail\.timeout"):
            parse_config_dict(raw)

    def test_switches_type_error_contains_key(self) -> None:
        raw = _base_raw_config()
        raw["servers"][0]["switches"] = {"bad": True}
        with self.assertRaisesRegex(TypeError, r"servers\[0\]\.switches"):
            parse_config_dict(raw)

    def test_log_level_type_error_contains_key(self) -> None:
        raw = _base_raw_config()
        raw["log"]["level"] = 10
        with self.assertRaisesRegex(TypeError, r"log\.level"):
            parse_config_dict(raw)

    def test_section_that_is_not_a_mapping(self) -> None:
        raw = _base_raw_config()
        raw["log"] = ["DEBUG"]
        with self.assertRaisesRegex(TypeError, r"log must be an object"):
            parse_config_dict(raw)

    def test_output_unknown_format_error_contains_key(self) -> None:
        raw = _base_raw_config()
        raw["output"]["formats"] = ["console", "markdown"]
        with self.assertRaisesRegex(ValueError, r"output\.formats"):
            parse_config_dict(raw)

    def test_empty_config_uses_defaults(self) -> None:
        cfg = parse_config_dict({})
        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual(cfg.servers, ())
        self.assertTrue(cfg.query.use_parsed_queries)
        self.assertEqual(cfg.output.formats, ("console",))

    def test_unknown_server_lookup(self) -> None:
        cfg = parse_config_dict(_base_raw_config())
        with self.assertRaises(SearchConfigError):
            cfg.server("nowhere")


class TestConfigFiles(unittest.TestCase):
    def test_merge_replaces_lists_and_merges_mappings(self) -> None:
        base = {"engines": {"notmuch": {"program": "notmuch", "timeout": 10}}, "servers": [{"name": "a"}]}
        override = {"engines": {"notmuch": {"timeout": 30}}, "servers": [{"name": "b"}]}
        merged = merge_config_dicts(base, override)
        self.assertEqual(merged["engines"]["notmuch"], {"program": "notmuch", "timeout": 30})
        self.assertEqual(merged["servers"], [{"name": "b"}])
        self.assertEqual(base["engines"]["notmuch"]["timeout"], 10)

    def test_load_with_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            default_path = Path(tmp) / "default.yml"
            config_path = Path(tmp) / "custom.yml"
            default_path.write_text(
                "log:\n  level: INFO\n"
                "engines:\n  notmuch:\n    program: notmuch\n"
                "default_engines:\n  maildir: notmuch\n",
                encoding="utf-8",
            )
            config_path.write_text(
                "log:\n  level: debug\n"
                "servers:\n  - name: mail\n    type: maildir\n    remove_prefix: /home/u/Mail\n",
                encoding="utf-8",
            )
            cfg = load_config_with_defaults(config_path, default_path=default_path)

        self.assertEqual(cfg.runtime.level, "DEBUG")
        self.assertEqual(cfg.server("mail").engine.program, "notmuch")

    def test_missing_default_file_is_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "custom.yml"
            config_path.write_text("output:\n  formats: json\n", encoding="utf-8")
            cfg = load_config_with_defaults(config_path, default_path=Path(tmp) / "missing.yml")
        self.assertEqual(cfg.output.formats, ("json",))

    def test_shipped_default_config_parses(self) -> None:
        cfg = load_config_with_defaults(
            REPO_ROOT / "config" / "example.yml",
            default_path=REPO_ROOT / "config" / "default.yml",
        )
        self.assertIn("mail", [server.name for server in cfg.servers])


class TestDispatcherFactory(unittest.TestCase):
    def test_contacts_from_config_are_last_source(self) -> None:
        cfg = parse_config_dict(_base_raw_config())
        dispatcher = create_search_dispatcher(cfg, contact_sources=[{"bob": ["bob@first.org"]}])

        spec = dispatcher.prepare("contact-from:bob")
        self.assertEqual(spec.parsed, (KeyValue("sender", "bob@first.org"),))

    def test_config_contacts_used_when_no_other_source(self) -> None:
        cfg = parse_config_dict(_base_raw_config())
        dispatcher = create_search_dispatcher(cfg)

        spec = dispatcher.prepare("contact-to:bob")
        self.assertEqual(
            spec.parsed,
            (Or(KeyValue("recipient", "bob@a.org"), KeyValue("recipient", "bob@b.org")),),
        )
        self.assertEqual(dispatcher.registry.server_names, ("mail", "work", "archive"))


if __name__ == "__main__":
    unittest.main()
