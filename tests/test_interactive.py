import tempfile
import unittest
from unittest import mock

from myweek import interactive
from myweek.engine import Reconciler
from myweek.model import TimeBlock, WeekSchedule


class FakeGenerator:
    def generate(self, current, request, history=(), chronotype=None):
        return {"days": {"Monday": [{"task": "Gym", "start": "19:00", "end": "20:00", "priority": "medium"}]}}


class TestInteractive(unittest.TestCase):
    def test_render_week_has_a_column_per_day(self) -> None:
        week = WeekSchedule.empty()
        week.days["Monday"] = [TimeBlock("Physics", "09:00", "10:00", "high", is_class=True)]
        table = interactive.render_week(week)
        self.assertEqual(len(table.columns), 7)
        self.assertEqual(table.row_count, 1)

    def test_chat_loop_applies_accepted_change(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            engine = Reconciler(base_dir=d, generator=FakeGenerator())
            with mock.patch.object(interactive.console, "input", side_effect=["add gym", ""]), \
                    mock.patch.object(interactive.console, "print"):
                interactive.run_interactive(engine, "alice")
            tasks = [b.task for b in engine.current_schedule("alice").days["Monday"]]
            self.assertEqual(tasks, ["Gym"])
            self.assertIsNone(engine.pending("alice"))


if __name__ == "__main__":
    unittest.main()
