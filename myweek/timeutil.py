"""
Time helpers.

Times are 'HH:MM' strings on a single day. Overlap rule:
    a.start < b.end AND b.start < a.end
Touching endpoints (a.end == b.start) is NOT an overlap.

Malformed times are rejected (MalformedTimeError), never clamped to 0.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from myweek.errors import MalformedTimeError


def to_minutes(hhmm: Any) -> int:
    """
    Convert 'HH:MM' to minutes since midnight.
    Raises MalformedTimeError for anything else.
    """
    if not isinstance(hhmm, str):
        raise MalformedTimeError(f"Invalid time format: {hhmm!r}")
    parts = hhmm.strip().split(":")
    if len(parts) != 2 or not all(p.isascii() and p.isdigit() for p in parts):
        raise MalformedTimeError(f"Invalid time format: {hhmm!r}")
    if len(parts[0]) > 2 or len(parts[1]) != 2:
        raise MalformedTimeError(f"Invalid time format: {hhmm!r}")
    h = int(parts[0])
    m = int(parts[1])
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise MalformedTimeError(f"Invalid time value: {hhmm!r}")
    return h * 60 + m


def minutes_to_hhmm(minutes: int) -> str:
    h, m = divmod(int(minutes), 60)
    return f"{h:02d}:{m:02d}"


def _bounds(block: Any) -> tuple[str, str]:
    if isinstance(block, Mapping):
        return block.get("start", ""), block.get("end", "")
    return block.start, block.end


def overlaps(a: Any, b: Any) -> bool:
    """
    True iff the two intervals overlap (strict, half-open).

    Accepts TimeBlock objects or plain dicts with 'start'/'end'.
    """
    a_start, a_end = _bounds(a)
    b_start, b_end = _bounds(b)
    return to_minutes(a_start) < to_minutes(b_end) and to_minutes(b_start) < to_minutes(a_end)
