"""
Conflict detection.

Compares the current week (classes merged in) with a candidate week from the
generator and reports every problem found, per day of the candidate:

1. class blocks must survive unchanged (weekdays only)
2. user tasks must not overlap a class (weekdays only)
3. candidate blocks must not overlap each other (all days)
4. a high-priority task must not be replaced by an overlapping one (all days)

Overlap rule (see timeutil.overlaps):
    start < other_end AND end > other_start

The candidate must already have passed model.validate_schedule().
"""

from __future__ import annotations

from myweek.model import (
    WEEKEND,
    ClassCollision,
    ClassViolation,
    ConflictReport,
    OverlapPair,
    PriorityConflict,
    TimeBlock,
    WeekSchedule,
)
from myweek.timeutil import overlaps


def _class_survives(class_block: TimeBlock, new_blocks: list[TimeBlock]) -> bool:
    # exact match only: a class shifted by one minute is a violation
    return any(b.is_class and b.same_slot(class_block) for b in new_blocks)


def _is_unchanged(old: TimeBlock, new: TimeBlock) -> bool:
    return old.same_slot(new) and (old.priority or "high") == new.priority


def find_internal_overlaps(day: str, blocks: list[TimeBlock]) -> list[OverlapPair]:
    """
    Find overlapping block pairs (A,B) within one day, each pair once (i<j).
    """
    out: list[OverlapPair] = []
    # O(n^2) is fine for one day of blocks
    for i in range(len(blocks)):
        for j in range(i + 1, len(blocks)):
            if overlaps(blocks[i], blocks[j]):
                out.append(OverlapPair(day=day, first=blocks[i], second=blocks[j]))
    return out


def detect_conflicts(old: WeekSchedule, new: WeekSchedule) -> ConflictReport:
    """
    Build a fresh ConflictReport for one reconciliation attempt.

    Days are visited in the candidate's order; records keep discovery order.
    """
    report = ConflictReport()

    for day, new_blocks in new.days.items():
        old_blocks = old.blocks(day)
        class_blocks = [b for b in old_blocks if b.is_class]

        if day not in WEEKEND:
            for cls in class_blocks:
                if not _class_survives(cls, new_blocks):
                    report.class_violations.append(ClassViolation(day=day, class_block=cls))

            for b in new_blocks:
                if b.is_class:
                    continue
                for cls in class_blocks:
                    if overlaps(b, cls):
                        report.class_collisions.append(ClassCollision(day=day, block=b, class_block=cls))

        report.internal_overlaps.extend(find_internal_overlaps(day, new_blocks))

        for old_b in old_blocks:
            # blocks stored without a priority were accepted earlier; assume they mattered
            if old_b.is_class or (old_b.priority or "high") != "high":
                continue
            for new_b in new_blocks:
                if new_b.is_class or _is_unchanged(old_b, new_b):
                    continue
                if overlaps(old_b, new_b):
                    report.priority_downgrades.append(PriorityConflict(day=day, old=old_b, new=new_b))

    return report
