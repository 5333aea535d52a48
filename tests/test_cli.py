"""
Tests for CLI entry points.

These tests focus on:
- Basic CLI argument validation
- The offline 'check' command and the yes/no answer flow, using a temporary
  data directory (to avoid touching real user data during tests)
"""

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

from myweek import storage
from myweek.cli import main
from myweek.model import TimeBlock, WeekSchedule


def run_cli(argv: list[str]) -> tuple[int, str]:
    buf = io.StringIO()
    code = None
    with contextlib.redirect_stdout(buf):
        try:
            main(argv)
        except SystemExit as exc:
            code = exc.code
    return code, buf.getvalue()


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._tmp.name)
        week = WeekSchedule.empty(week_start="2026-02-16")
        week.days["Monday"] = [TimeBlock("Study", "18:00", "20:00", "high")]
        storage.save_schedule("alice", week, self.data_dir)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def cli(self, *args: str) -> tuple[int, str]:
        return run_cli(["--data-dir", str(self.data_dir), "--user", "alice", *args])

    def write_candidate(self, days: dict) -> str:
        p = self.data_dir / "candidate.json"
        p.write_text(json.dumps({"days": days}), encoding="utf-8")
        return str(p)

    def test_plan_requires_text(self) -> None:
        code, out = self.cli("plan", "")
        self.assertNotEqual(code, 0)

    def test_show_lists_week(self) -> None:
        code, out = self.cli("show")
        self.assertEqual(code, 0)
        self.assertIn("18:00-20:00 Study (high)", out)

    def test_check_rejects_overlap(self) -> None:
        path = self.write_candidate(
            {
                "Tuesday": [
                    {"task": "A", "start": "09:00", "end": "10:00", "priority": "low"},
                    {"task": "B", "start": "09:30", "end": "10:30", "priority": "low"},
                ]
            }
        )
        code, out = self.cli("check", path)
        self.assertEqual(code, 1)
        self.assertIn("internal_overlap", out)

    def test_check_then_answer_yes(self) -> None:
        path = self.write_candidate({"Monday": [{"task": "Gym", "start": "19:00", "end": "20:00", "priority": "medium"}]})
        code, out = self.cli("--json", "check", path)
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["outcome"], "needs_confirmation")

        code, out = self.cli("answer", "yes")
        self.assertEqual(code, 0)
        self.assertIn("Schedule updated.", out)
        stored = storage.load_schedule("alice", self.data_dir)
        self.assertEqual([b.task for b in stored.days["Monday"]], ["Gym"])

    def test_check_missing_file(self) -> None:
        code, out = self.cli("check", str(self.data_dir / "nope.json"))
        self.assertEqual(code, 1)

    def test_toggle(self) -> None:
        code, out = self.cli("toggle", "monday", "0")
        self.assertEqual(code, 0)
        self.assertIn("done", out)

    def test_export(self) -> None:
        out_path = self.data_dir / "week.ics"
        code, out = self.cli("export", str(out_path))
        self.assertEqual(code, 0)
        self.assertTrue(out_path.exists())


if __name__ == "__main__":
    unittest.main()
