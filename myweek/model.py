"""
Central data model definitions used across the project.

This module defines the canonical structure of blocks, weeks and conflict
records so that:
- all modules share the same field names
- stored JSON, generator output and the terminal views stay consistent
- loosely-typed generator output is normalized in exactly one place

Wire format (stored documents and generator output) uses the keys
task / start / end / priority / isClass / completed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Optional

from myweek.errors import InvalidIntervalError, InvalidPriorityError, MalformedScheduleError
from myweek.timeutil import to_minutes


DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
WEEKEND = frozenset({"Saturday", "Sunday"})
PRIORITIES = ("high", "medium", "low")

PLACEHOLDER_TASK = "Untitled task"
DEFAULT_PRIORITY = "medium"


@dataclass
class TimeBlock:
    """
    One scheduled interval on one day.

    priority is None only for blocks read back from storage that never had one;
    normalize_block() always fills it in.
    """

    task: str
    start: str
    end: str
    priority: Optional[str] = DEFAULT_PRIORITY
    is_class: bool = False
    completed: bool = False

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "TimeBlock":
        """
        Read a stored block as-is (no defaults for priority).
        """
        return cls(
            task=str(raw.get("task", "") or ""),
            start=str(raw.get("start", "") or ""),
            end=str(raw.get("end", "") or ""),
            priority=raw.get("priority"),
            is_class=bool(raw.get("isClass", False)),
            completed=bool(raw.get("completed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"task": self.task, "start": self.start, "end": self.end}
        if self.priority is not None:
            out["priority"] = self.priority
        out["isClass"] = self.is_class
        out["completed"] = self.completed
        return out

    def same_slot(self, other: "TimeBlock") -> bool:
        """Same task name at the same start and end time."""
        return self.task == other.task and self.start == other.start and self.end == other.end

    def label(self) -> str:
        return f"{self.task} ({self.start}-{self.end})"


def normalize_block(raw: Mapping[str, Any]) -> TimeBlock:
    """
    Turn a loosely-typed block into a canonical TimeBlock.

    - missing task -> title/name key, else placeholder
    - missing priority -> "medium" (present-but-invalid values pass through
      so validate_schedule() can reject them)
    - missing isClass/completed -> False
    - start/end passed through unchanged ("" if absent)
    """
    task = raw.get("task") or raw.get("title") or raw.get("name") or PLACEHOLDER_TASK
    priority = raw.get("priority")
    if priority is None:
        priority = DEFAULT_PRIORITY
    start = raw.get("start")
    end = raw.get("end")
    return TimeBlock(
        task=str(task),
        start="" if start is None else start,
        end="" if end is None else end,
        priority=priority,
        is_class=bool(raw.get("isClass", False)),
        completed=bool(raw.get("completed", False)),
    )


@dataclass
class WeekSchedule:
    """
    A week: day name -> ordered list of blocks, plus metadata.

    Day order follows insertion order (the generator's key order for candidates).
    """

    days: dict[str, list[TimeBlock]] = field(default_factory=dict)
    week_start: Optional[str] = None
    timezone: Optional[str] = None

    @classmethod
    def empty(cls, week_start: Optional[str] = None, timezone: Optional[str] = None) -> "WeekSchedule":
        return cls(
            days={name: [] for name in DAY_NAMES},
            week_start=week_start or date.today().isoformat(),
            timezone=timezone,
        )

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "WeekSchedule":
        """
        Read a stored document. Unknown day names and non-list days are skipped;
        missing days are added empty so every stored week has all seven.
        """
        days_raw = raw.get("days", {})
        days: dict[str, list[TimeBlock]] = {name: [] for name in DAY_NAMES}
        if isinstance(days_raw, Mapping):
            for name, blocks in days_raw.items():
                if name not in DAY_NAMES or not isinstance(blocks, list):
                    continue
                days[name] = [TimeBlock.from_dict(b) for b in blocks if isinstance(b, Mapping)]
        return cls(days=days, week_start=raw.get("weekStart"), timezone=raw.get("timezone"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "weekStart": self.week_start,
            "timezone": self.timezone,
            "days": {name: [b.to_dict() for b in blocks] for name, blocks in self.days.items()},
        }

    def blocks(self, day: str) -> list[TimeBlock]:
        return self.days.get(day, [])

    def copy(self) -> "WeekSchedule":
        return WeekSchedule(
            days={name: [replace(b) for b in blocks] for name, blocks in self.days.items()},
            week_start=self.week_start,
            timezone=self.timezone,
        )


def parse_candidate(raw: Any) -> WeekSchedule:
    """
    Structural check + normalization of a candidate produced by the generator.

    Raises MalformedScheduleError if the shape is not day -> list of objects.
    """
    if not isinstance(raw, Mapping) or not isinstance(raw.get("days"), Mapping):
        raise MalformedScheduleError("Candidate schedule has no 'days' mapping")

    days: dict[str, list[TimeBlock]] = {}
    for name, blocks in raw["days"].items():
        if name not in DAY_NAMES:
            raise MalformedScheduleError(f"Unknown day name: {name!r}")
        if not isinstance(blocks, list):
            raise MalformedScheduleError(f"Day {name} is not a list of blocks")
        out: list[TimeBlock] = []
        for b in blocks:
            if not isinstance(b, Mapping):
                raise MalformedScheduleError(f"Block on {name} is not an object: {b!r}")
            out.append(normalize_block(b))
        days[name] = out

    return WeekSchedule(days=days, week_start=raw.get("weekStart"), timezone=raw.get("timezone"))


def validate_schedule(schedule: WeekSchedule) -> None:
    """
    Fail fast on blocks that are not well-typed.

    Order per block: priority, then times (MalformedTimeError from to_minutes),
    then start < end.
    """
    for day, blocks in schedule.days.items():
        for b in blocks:
            if b.priority not in PRIORITIES:
                raise InvalidPriorityError(f"Invalid priority {b.priority!r} for {b.task!r} on {day}")
            start = to_minutes(b.start)
            end = to_minutes(b.end)
            if start >= end:
                raise InvalidIntervalError(f"{b.label()} on {day} ends before it starts")


# ---------------------------------------------------------------------------
# Conflict records
# ---------------------------------------------------------------------------


@dataclass
class OverlapPair:
    day: str
    first: TimeBlock
    second: TimeBlock

    def describe(self) -> str:
        return f"{self.first.label()} overlaps with {self.second.label()} on {self.day}"

    def to_dict(self) -> dict[str, Any]:
        return {"day": self.day, "first": self.first.to_dict(), "second": self.second.to_dict()}


@dataclass
class ClassViolation:
    day: str
    class_block: TimeBlock

    def to_dict(self) -> dict[str, Any]:
        return {"day": self.day, "class": self.class_block.to_dict()}


@dataclass
class ClassCollision:
    day: str
    block: TimeBlock
    class_block: TimeBlock

    def to_dict(self) -> dict[str, Any]:
        return {"day": self.day, "class": self.class_block.to_dict(), "conflicting": self.block.to_dict()}


@dataclass
class PriorityConflict:
    day: str
    old: TimeBlock
    new: TimeBlock

    def to_dict(self) -> dict[str, Any]:
        return {"day": self.day, "old": self.old.to_dict(), "new": self.new.to_dict()}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "PriorityConflict":
        return cls(
            day=str(raw.get("day", "")),
            old=TimeBlock.from_dict(raw.get("old", {})),
            new=TimeBlock.from_dict(raw.get("new", {})),
        )


@dataclass
class ConflictReport:
    internal_overlaps: list[OverlapPair] = field(default_factory=list)
    class_violations: list[ClassViolation] = field(default_factory=list)
    class_collisions: list[ClassCollision] = field(default_factory=list)
    priority_downgrades: list[PriorityConflict] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (
            self.internal_overlaps or self.class_violations or self.class_collisions or self.priority_downgrades
        )

    def counts(self) -> dict[str, int]:
        return {
            "internalOverlaps": len(self.internal_overlaps),
            "classViolations": len(self.class_violations),
            "classCollisions": len(self.class_collisions),
            "priorityDowngrades": len(self.priority_downgrades),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "internalOverlaps": [x.to_dict() for x in self.internal_overlaps],
            "classViolations": [x.to_dict() for x in self.class_violations],
            "classCollisions": [x.to_dict() for x in self.class_collisions],
            "priorityDowngrades": [x.to_dict() for x in self.priority_downgrades],
        }
