from __future__ import annotations

import json
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from bindsym_core.common import TableReadError, TableWriteError, write_text_atomic  # noqa: E402
from bindsym_core.model import BindingEntry  # noqa: E402
from bindsym_core.table import (  # noqa: E402
    load_prior_names,
    read_symbol_table,
    render_symbol_table,
    stabilize,
    write_symbol_table,
)

ENTRIES = [
    BindingEntry("_ZN3Foo3BarEv", "Foo::Bar", "(*Foo).Bar"),
    BindingEntry("_ZN3Foo3BarEi", "Foo::Bar", "(*Foo).Bar__1"),
    BindingEntry("cJSON_Parse", "cJSON_Parse", "Parse"),
]


class SymbolTableFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.path = self.root / "llcppg.symb.json"

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_round_trip_preserves_every_field_and_order(self) -> None:
        status, _ = write_symbol_table(self.path, ENTRIES)
        self.assertEqual(status, "updated")
        self.assertEqual(read_symbol_table(self.path), ENTRIES)

    def test_rendered_records_use_table_keys(self) -> None:
        payload = json.loads(render_symbol_table(ENTRIES[:1]))
        self.assertEqual(payload, [{"mangle": "_ZN3Foo3BarEv", "c++": "Foo::Bar", "go": "(*Foo).Bar"}])

    def test_reads_fields_in_any_order(self) -> None:
        self.path.write_text(
            json.dumps([{"go": "(*Foo).Bar", "mangle": "_ZN3Foo3BarEv", "c++": "Foo::Bar"}]),
            encoding="utf-8",
        )
        self.assertEqual(read_symbol_table(self.path), ENTRIES[:1])

    def test_missing_table_is_empty(self) -> None:
        self.assertEqual(load_prior_names(self.root / "absent.json"), {})

    def test_corrupt_table_is_fatal(self) -> None:
        self.path.write_text("[{\"mangle\": ", encoding="utf-8")
        with self.assertRaises(TableReadError):
            load_prior_names(self.path)

    def test_table_must_be_array_of_complete_records(self) -> None:
        for payload in ({"mangle": "x"}, [["x"]], [{"mangle": "x", "c++": "x"}], [{"mangle": "x", "c++": "x", "go": 1}]):
            with self.subTest(payload=payload):
                self.path.write_text(json.dumps(payload), encoding="utf-8")
                with self.assertRaises(TableReadError):
                    read_symbol_table(self.path)

    def test_unchanged_table_is_not_rewritten(self) -> None:
        write_symbol_table(self.path, ENTRIES)
        before = self.path.stat().st_mtime_ns
        status, diff = write_symbol_table(self.path, ENTRIES)
        self.assertEqual(status, "unchanged")
        self.assertEqual(diff, "")
        self.assertEqual(self.path.stat().st_mtime_ns, before)

    def test_check_reports_drift_without_writing(self) -> None:
        write_symbol_table(self.path, ENTRIES[:1])
        original = self.path.read_text(encoding="utf-8")
        status, diff = write_symbol_table(self.path, ENTRIES, check=True)
        self.assertEqual(status, "drift")
        self.assertIn("+", diff)
        self.assertIn("cJSON_Parse", diff)
        self.assertEqual(self.path.read_text(encoding="utf-8"), original)

    def test_dry_run_diff_for_new_table_starts_from_nothing(self) -> None:
        status, diff = write_symbol_table(self.path, ENTRIES, dry_run=True)
        self.assertEqual(status, "would_write")
        self.assertTrue(diff.startswith("--- /dev/null\n+++ b/"))

    def test_dry_run_does_not_create_file(self) -> None:
        status, _ = write_symbol_table(self.path, ENTRIES, dry_run=True)
        self.assertEqual(status, "would_write")
        self.assertFalse(self.path.exists())

    def test_failed_write_leaves_old_table_untouched(self) -> None:
        write_symbol_table(self.path, ENTRIES[:1])
        original = self.path.read_text(encoding="utf-8")
        with mock.patch("bindsym_core.common.os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(TableWriteError):
                write_text_atomic(self.path, "garbage")
        self.assertEqual(self.path.read_text(encoding="utf-8"), original)
        self.assertEqual(sorted(os.listdir(self.root)), ["llcppg.symb.json"])


class StabilizeTests(unittest.TestCase):
    def test_prior_names_override_fresh_candidates(self) -> None:
        fresh = [
            BindingEntry("_ZN3Foo3BarEi", "Foo::Bar", "(*Foo).Bar"),
            BindingEntry("_ZN3Foo3BarEv", "Foo::Bar", "(*Foo).Bar__1"),
        ]
        prior = {"_ZN3Foo3BarEv": "(*Foo).Bar", "_ZN3Foo3BarEi": "(*Foo).Bar__1"}
        stabilized, kept = stabilize(fresh, prior)
        self.assertEqual([entry.generated_name for entry in stabilized], ["(*Foo).Bar__1", "(*Foo).Bar"])
        self.assertEqual(kept, 2)

    def test_new_symbols_keep_fresh_names(self) -> None:
        fresh = [BindingEntry("_new", "New", "New")]
        stabilized, kept = stabilize(fresh, {"_old": "Old"})
        self.assertEqual(stabilized, fresh)
        self.assertEqual(kept, 0)

    def test_stabilize_keeps_native_name_and_order(self) -> None:
        fresh = [BindingEntry("_b", "B", "B"), BindingEntry("_a", "A", "A")]
        stabilized, _ = stabilize(fresh, {"_a": "Renamed"})
        self.assertEqual(
            stabilized,
            [BindingEntry("_b", "B", "B"), BindingEntry("_a", "A", "Renamed")],
        )


if __name__ == "__main__":
    unittest.main()
