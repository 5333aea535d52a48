"""
Courses -> class blocks, and merging them into a user's week.

Class blocks are owned by the course data, not by the stored schedule:
- merge_classes() prepends them to every day when a week is read
- strip_classes() removes them again before any write

Course document (courses/<user>.json):

    [
      {"name": "Physics",
       "schedule": {"Mon": [{"subject": "Physics", "startTime": "09:00", "endTime": "10:00"}],
                    "Wed": 2}}
    ]

A day entry is either a list of blocks or (older documents) a number of hours,
which becomes one block starting at 09:00.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from myweek.errors import MalformedTimeError
from myweek.model import DAY_NAMES, WEEKEND, TimeBlock, WeekSchedule
from myweek.timeutil import minutes_to_hhmm, to_minutes


logger = logging.getLogger(__name__)

LEGACY_START = "09:00"
_END_OF_DAY = 23 * 60 + 59

_DAY_KEYS = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
}


@dataclass
class LegacyHourCount:
    hours: float


@dataclass
class ClassBlockList:
    entries: list[Mapping[str, Any]]


DayEntry = Union[LegacyHourCount, ClassBlockList]


def parse_day_entry(raw: Any) -> Optional[DayEntry]:
    """
    Resolve one day entry of a course schedule. Returns None for anything that
    yields no classes (zero/negative hours, unknown shapes).
    """
    if isinstance(raw, list):
        return ClassBlockList([e for e in raw if isinstance(e, Mapping)])
    # bool is an int subclass; True is not "one hour"
    if isinstance(raw, (int, float)) and not isinstance(raw, bool) and math.isfinite(raw) and raw > 0:
        return LegacyHourCount(raw)
    return None


def _format_hours(hours: float) -> str:
    return str(int(hours)) if float(hours).is_integer() else str(hours)


def _day_name(key: str) -> Optional[str]:
    name = _DAY_KEYS.get(key, key)
    if name not in DAY_NAMES or name in WEEKEND:
        return None
    return name


def project_entry(course_name: str, entry: DayEntry) -> list[TimeBlock]:
    """
    Build class blocks for one course on one day.
    """
    if isinstance(entry, LegacyHourCount):
        start = to_minutes(LEGACY_START)
        end = min(start + round(entry.hours * 60), _END_OF_DAY)
        return [
            TimeBlock(
                task=f"{course_name} ({_format_hours(entry.hours)}h)",
                start=LEGACY_START,
                end=minutes_to_hhmm(end),
                priority="high",
                is_class=True,
            )
        ]

    out: list[TimeBlock] = []
    for e in entry.entries:
        start = str(e.get("startTime", "") or "")
        end = str(e.get("endTime", "") or "")
        try:
            ok = to_minutes(start) < to_minutes(end)
        except MalformedTimeError:
            ok = False
        if not ok:
            logger.warning("Skipping class block with bad times in %r: %s-%s", course_name, start, end)
            continue
        out.append(
            TimeBlock(
                task=str(e.get("subject") or course_name),
                start=start,
                end=end,
                priority="high",
                is_class=True,
            )
        )
    return out


def class_blocks_for_week(courses: list[Mapping[str, Any]]) -> dict[str, list[TimeBlock]]:
    """
    Collect class blocks of all courses, per full day name (all seven keys).
    """
    by_day: dict[str, list[TimeBlock]] = {name: [] for name in DAY_NAMES}
    for course in courses:
        name = str(course.get("name", "") or "")
        schedule = course.get("schedule") or {}
        if not isinstance(schedule, Mapping):
            continue
        for key, raw in schedule.items():
            day = _day_name(str(key))
            if day is None:
                continue
            entry = parse_day_entry(raw)
            if entry is None:
                continue
            by_day[day].extend(project_entry(name, entry))
    return by_day


def merge_classes(stored: WeekSchedule, courses: list[Mapping[str, Any]]) -> WeekSchedule:
    """
    Return a new week with fresh class blocks first, then the user's tasks.

    Any class blocks already present in `stored` are dropped; the course data
    is the only source of classes.
    """
    classes = class_blocks_for_week(courses)
    merged = strip_classes(stored)
    for day in DAY_NAMES:
        merged.days[day] = classes[day] + merged.days.get(day, [])
    return merged


def strip_classes(schedule: WeekSchedule) -> WeekSchedule:
    out = schedule.copy()
    for day, blocks in out.days.items():
        out.days[day] = [b for b in blocks if not b.is_class]
    return out


# ---------------------------------------------------------------------------
# Course documents
# ---------------------------------------------------------------------------


def courses_path(user_id: str, base_dir: str | Path) -> Path:
    return Path(base_dir) / "courses" / f"{user_id}.json"


def load_courses(user_id: str, base_dir: str | Path) -> list[dict[str, Any]]:
    """
    Load a user's courses. Missing or broken file -> [] (no classes).
    """
    path = courses_path(user_id, base_dir)
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Could not read course file %s", path)
        return []
    if not isinstance(data, list):
        return []
    return [c for c in data if isinstance(c, dict)]


def save_courses(user_id: str, courses: list[dict[str, Any]], base_dir: str | Path) -> None:
    path = courses_path(user_id, base_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(courses, indent=2, ensure_ascii=False), encoding="utf-8")
