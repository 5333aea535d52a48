"""
Unit tests for local storage of weeks and pending changes.

Storage contract:
- Missing file -> empty week is created; corrupt file -> empty week
- Class blocks are never written
- One pending change per user; a newer one replaces the older
"""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from myweek import storage
from myweek.model import DAY_NAMES, PriorityConflict, TimeBlock, WeekSchedule


class TestScheduleStorage(unittest.TestCase):
    def test_first_load_creates_empty_week(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            week = storage.load_schedule("alice", d)
            self.assertEqual(list(week.days), list(DAY_NAMES))
            self.assertTrue(all(not blocks for blocks in week.days.values()))
            self.assertTrue(storage.schedule_path("alice", d).exists())

    def test_corrupt_file_gives_empty_week(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = storage.schedule_path("alice", d)
            p.parent.mkdir(parents=True)
            p.write_text("[1, 2", encoding="utf-8")
            with self.assertLogs("myweek.storage", level="WARNING"):
                week = storage.load_schedule("alice", d)
            self.assertEqual(week.days["Monday"], [])

    def test_save_strips_classes(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            week = WeekSchedule.empty(week_start="2026-02-16", timezone="UTC")
            week.days["Monday"] = [
                TimeBlock("Physics", "09:00", "10:00", "high", is_class=True),
                TimeBlock("Gym", "18:00", "19:00", "medium"),
            ]
            storage.save_schedule("alice", week, d)

            data = json.loads(storage.schedule_path("alice", d).read_text(encoding="utf-8"))
            self.assertEqual([b["task"] for b in data["days"]["Monday"]], ["Gym"])
            self.assertEqual(data["weekStart"], "2026-02-16")

            loaded = storage.load_schedule("alice", d)
            self.assertEqual(loaded.days["Monday"], [TimeBlock("Gym", "18:00", "19:00", "medium")])

    def test_delete_schedule_resets_week(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            week = WeekSchedule.empty()
            week.days["Friday"] = [TimeBlock("Read", "20:00", "21:00", "low")]
            storage.save_schedule("alice", week, d)
            storage.delete_schedule("alice", d)
            self.assertEqual(storage.load_schedule("alice", d).days["Friday"], [])

    def test_data_dir_from_environment(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            with mock.patch.dict(os.environ, {"MYWEEK_DATA_DIR": d}):
                self.assertEqual(storage.default_data_dir(), Path(d))
                storage.load_schedule("bob")
            self.assertTrue((Path(d) / "schedules" / "bob.json").exists())


class TestPendingStorage(unittest.TestCase):
    def test_missing_pending_is_none(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            self.assertIsNone(storage.load_pending("alice", d))

    def test_save_load_clear(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            candidate = WeekSchedule(days={"Monday": [TimeBlock("Gym", "19:00", "20:00", "medium")]})
            conflict = PriorityConflict(
                day="Monday",
                old=TimeBlock("Study", "18:00", "20:00", "high"),
                new=TimeBlock("Gym", "19:00", "20:00", "medium"),
            )
            pending = storage.PendingChange(candidate=candidate, conflicts=[conflict], message="Replace?")
            storage.save_pending("alice", pending, d)

            loaded = storage.load_pending("alice", d)
            assert loaded is not None
            self.assertEqual(loaded.token, pending.token)
            self.assertEqual(loaded.message, "Replace?")
            self.assertEqual(loaded.conflicts, [conflict])
            self.assertEqual(loaded.candidate.days["Monday"][0].task, "Gym")

            storage.clear_pending("alice", d)
            self.assertIsNone(storage.load_pending("alice", d))

    def test_newer_pending_replaces_older(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            first = storage.PendingChange(candidate=WeekSchedule.empty(), message="first")
            second = storage.PendingChange(candidate=WeekSchedule.empty(), message="second")
            storage.save_pending("alice", first, d)
            with self.assertLogs("myweek.storage", level="INFO"):
                storage.save_pending("alice", second, d)
            loaded = storage.load_pending("alice", d)
            assert loaded is not None
            self.assertEqual(loaded.token, second.token)
            self.assertNotEqual(first.token, second.token)


if __name__ == "__main__":
    unittest.main()
