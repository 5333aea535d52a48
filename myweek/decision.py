"""
Reconciliation decisions.

Turns a ConflictReport into exactly one outcome. Categories are checked in a
fixed order and the first non-empty one wins:

    internal overlap  -> rejected
    class violation   -> rejected
    class collision   -> rejected
    priority downgrade -> needs_confirmation
    nothing           -> accepted

Also resolves the user's yes/no answer to a pending confirmation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from myweek.model import ClassCollision, ClassViolation, ConflictReport, PriorityConflict, WeekSchedule


MAX_LISTED_OVERLAPS = 3

REASON_INTERNAL_OVERLAP = "internal_overlap"
REASON_CLASS_VIOLATION = "class_violation"
REASON_CLASS_COLLISION = "class_collision"
REASON_DECLINED = "declined"

REPROMPT_MESSAGE = "Please type yes or no."


@dataclass
class Accepted:
    schedule: WeekSchedule
    outcome = "accepted"

    def to_dict(self) -> dict[str, Any]:
        return {"outcome": self.outcome, "schedule": self.schedule.to_dict()}


@dataclass
class Rejected:
    reason_code: str
    message: str
    outcome = "rejected"

    def to_dict(self) -> dict[str, Any]:
        return {"outcome": self.outcome, "reasonCode": self.reason_code, "message": self.message}


@dataclass
class NeedsConfirmation:
    message: str
    pending_candidate: WeekSchedule
    conflicts: list[PriorityConflict] = field(default_factory=list)
    token: str = ""
    outcome = "needs_confirmation"

    def to_dict(self) -> dict[str, Any]:
        out = {
            "outcome": self.outcome,
            "message": self.message,
            "pendingCandidate": self.pending_candidate.to_dict(),
            "conflicts": [c.to_dict() for c in self.conflicts],
        }
        if self.token:
            out["token"] = self.token
        return out


Outcome = Union[Accepted, Rejected, NeedsConfirmation]


def _unique_classes(items: list[ClassViolation] | list[ClassCollision]) -> list[tuple[str, Any]]:
    # dedupe key: day + task + start, first occurrence wins
    seen: dict[tuple[str, str, str], tuple[str, Any]] = {}
    for it in items:
        key = (it.day, it.class_block.task, it.class_block.start)
        if key not in seen:
            seen[key] = (it.day, it.class_block)
    return list(seen.values())


def _class_names(items: list[ClassViolation] | list[ClassCollision]) -> str:
    return ", ".join(f"{c.task} ({c.start} - {c.end}) on {day}" for day, c in _unique_classes(items))


def confirmation_message(conflict: PriorityConflict) -> str:
    return (
        f"{conflict.new.task} overlaps with a high-priority task "
        f"({conflict.old.task}, {conflict.old.start}-{conflict.old.end}). "
        "Do you want to replace it anyway? (yes/no)"
    )


def decide(report: ConflictReport, candidate: WeekSchedule) -> Outcome:
    if report.internal_overlaps:
        listed = "; ".join(o.describe() for o in report.internal_overlaps[:MAX_LISTED_OVERLAPS])
        return Rejected(
            REASON_INTERNAL_OVERLAP,
            f"Schedule conflict detected: {listed}. "
            "Tasks cannot overlap with each other. Please rephrase your request to avoid time conflicts.",
        )

    if report.class_violations:
        return Rejected(
            REASON_CLASS_VIOLATION,
            f"Cannot move or delete classes. The following classes cannot be changed: "
            f"{_class_names(report.class_violations)}. Classes are immutable and have fixed times. "
            "If you need to modify your class schedule, please update it in your courses.",
        )

    if report.class_collisions:
        return Rejected(
            REASON_CLASS_COLLISION,
            f"Cannot schedule tasks during class times. The following classes conflict with your request: "
            f"{_class_names(report.class_collisions)}. Please choose a different time slot.",
        )

    if report.priority_downgrades:
        return NeedsConfirmation(
            message=confirmation_message(report.priority_downgrades[0]),
            pending_candidate=candidate,
            conflicts=list(report.priority_downgrades),
        )

    return Accepted(candidate)


def resolve_answer(answer: str, pending: NeedsConfirmation) -> Outcome:
    """
    'yes' applies the pending candidate as-is (no second validation pass),
    'no' discards it, anything else asks again and changes nothing.
    """
    a = (answer or "").strip().lower()
    if a == "yes":
        return Accepted(pending.pending_candidate)
    if a == "no":
        return Rejected(REASON_DECLINED, "Change cancelled.")
    return NeedsConfirmation(
        message=REPROMPT_MESSAGE,
        pending_candidate=pending.pending_candidate,
        conflicts=pending.conflicts,
        token=pending.token,
    )
