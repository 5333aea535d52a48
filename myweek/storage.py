"""
Persistent storage for each user's week and pending change.

This module manages the files:

    <data_dir>/schedules/<user>.json   one WeekSchedule document, class-free
    <data_dir>/pending/<user>.json     at most one change awaiting yes/no

Design rationale:
- class blocks come from the course data and are never written here
- writes replace the whole document
- the pending slot holds a single change per user; a newer one overwrites it
"""

from __future__ import annotations

import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from myweek.courses import strip_classes
from myweek.model import PriorityConflict, WeekSchedule


logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Kolkata"


def default_data_dir() -> Path:
    """
    Return the data directory: $MYWEEK_DATA_DIR, else <package>/data.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    env = os.environ.get("MYWEEK_DATA_DIR", "").strip()
    if env:
        return Path(env)
    return Path(__file__).resolve().parent / "data"


def default_timezone() -> str:
    return os.environ.get("MYWEEK_TIMEZONE", "").strip() or DEFAULT_TIMEZONE


def _base(base_dir: str | Path | None) -> Path:
    return Path(base_dir) if base_dir is not None else default_data_dir()


def schedule_path(user_id: str, base_dir: str | Path | None = None) -> Path:
    return _base(base_dir) / "schedules" / f"{user_id}.json"


def pending_path(user_id: str, base_dir: str | Path | None = None) -> Path:
    return _base(base_dir) / "pending" / f"{user_id}.json"


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def _read_json(path: Path) -> Any:
    """
    Read JSON, returning None for a missing or unreadable file.
    """
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Ignoring unreadable file %s", path)
        return None


# ---------------------------------------------------------------------------
# Weekly schedule
# ---------------------------------------------------------------------------


def load_schedule(user_id: str, base_dir: str | Path | None = None) -> WeekSchedule:
    """
    Load a user's stored (class-free) week.

    First run: the file does not exist yet, so an empty week is created and
    written. A corrupted file yields an empty week but is left on disk.
    """
    path = schedule_path(user_id, base_dir)
    if not path.exists():
        schedule = WeekSchedule.empty(timezone=default_timezone())
        _write_json(path, schedule.to_dict())
        return schedule

    data = _read_json(path)
    if not isinstance(data, dict):
        return WeekSchedule.empty(timezone=default_timezone())
    return WeekSchedule.from_dict(data)


def save_schedule(user_id: str, schedule: WeekSchedule, base_dir: str | Path | None = None) -> None:
    """
    Replace the stored week. Class blocks are always stripped first.
    """
    path = schedule_path(user_id, base_dir)
    _write_json(path, strip_classes(schedule).to_dict())
    logger.debug("Saved schedule for %s to %s", user_id, path)


def delete_schedule(user_id: str, base_dir: str | Path | None = None) -> WeekSchedule:
    """
    Reset a user's week to seven empty days and return it.
    """
    schedule = WeekSchedule.empty(timezone=default_timezone())
    _write_json(schedule_path(user_id, base_dir), schedule.to_dict())
    return schedule


# ---------------------------------------------------------------------------
# Pending change (single slot per user)
# ---------------------------------------------------------------------------


@dataclass
class PendingChange:
    candidate: WeekSchedule
    conflicts: list[PriorityConflict] = field(default_factory=list)
    message: str = ""
    token: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "createdAt": self.created_at,
            "message": self.message,
            "candidate": self.candidate.to_dict(),
            "conflicts": [c.to_dict() for c in self.conflicts],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "PendingChange":
        conflicts = raw.get("conflicts", [])
        return cls(
            candidate=WeekSchedule.from_dict(raw.get("candidate", {})),
            conflicts=[PriorityConflict.from_dict(c) for c in conflicts if isinstance(c, dict)],
            message=str(raw.get("message", "")),
            token=str(raw.get("token", "")),
            created_at=str(raw.get("createdAt", "")),
        )


def load_pending(user_id: str, base_dir: str | Path | None = None) -> Optional[PendingChange]:
    data = _read_json(pending_path(user_id, base_dir))
    if not isinstance(data, dict):
        return None
    return PendingChange.from_dict(data)


def save_pending(user_id: str, pending: PendingChange, base_dir: str | Path | None = None) -> None:
    path = pending_path(user_id, base_dir)
    if path.exists():
        logger.info("Replacing pending change for %s", user_id)
    _write_json(path, pending.to_dict())


def clear_pending(user_id: str, base_dir: str | Path | None = None) -> None:
    path = pending_path(user_id, base_dir)
    if path.exists():
        path.unlink()
