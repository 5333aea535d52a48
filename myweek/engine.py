"""
Reconciliation engine.

One request runs start to finish before the next one for the same user:

    load stored week -> merge classes -> ask generator -> validate
    -> detect conflicts -> decide -> save / hold as pending / discard

While a change is pending, every new message for that user is treated as the
answer to it (yes / no / ask again).
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Optional, Protocol

from myweek import storage
from myweek.conflicts import detect_conflicts
from myweek.courses import load_courses, merge_classes, strip_classes
from myweek.decision import Accepted, NeedsConfirmation, Outcome, Rejected, decide, resolve_answer
from myweek.errors import GeneratorRefusedError, ValidationError
from myweek.model import DAY_NAMES, WeekSchedule, parse_candidate, validate_schedule


logger = logging.getLogger(__name__)

REASON_STALE = "stale_confirmation"
REASON_NOTHING_PENDING = "nothing_pending"
REASON_CHANGE_PENDING = "change_pending"


class Generator(Protocol):
    def generate(
        self,
        current: WeekSchedule,
        request: str,
        history: Iterable[Mapping[str, str]] = (),
        chronotype: Optional[str] = None,
    ) -> dict[str, Any]: ...


class Reconciler:
    """
    Applies generator proposals to stored weeks.

    base_dir: data directory (defaults to storage.default_data_dir()).
    generator: anything with a generate() method; only needed for request_change().
    """

    def __init__(self, base_dir: str | Path | None = None, generator: Optional[Generator] = None) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else storage.default_data_dir()
        self.generator = generator
        self._locks: dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _lock(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[user_id]

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    def current_schedule(self, user_id: str) -> WeekSchedule:
        """Stored week with class blocks merged in (what the user sees)."""
        stored = storage.load_schedule(user_id, self.base_dir)
        return merge_classes(stored, load_courses(user_id, self.base_dir))

    def pending(self, user_id: str) -> Optional[storage.PendingChange]:
        return storage.load_pending(user_id, self.base_dir)

    # -----------------------------------------------------------------------
    # Changes
    # -----------------------------------------------------------------------

    def request_change(
        self,
        user_id: str,
        message: str,
        history: Iterable[Mapping[str, str]] = (),
        chronotype: Optional[str] = None,
    ) -> Outcome:
        """
        Handle one chat message asking for a schedule change.

        GeneratorUnavailableError / GeneratorParseError propagate to the caller.
        """
        with self._lock(user_id):
            if storage.load_pending(user_id, self.base_dir) is not None:
                return self._confirm(user_id, message, None)

            if self.generator is None:
                raise RuntimeError("No generator configured")

            current = self.current_schedule(user_id)
            try:
                raw = self.generator.generate(current, message, history=history, chronotype=chronotype)
            except GeneratorRefusedError as exc:
                logger.info("Generator refused request for %s: %s", user_id, exc)
                return Rejected(exc.code, str(exc))
            return self._reconcile(user_id, current, raw)

    def reconcile(self, user_id: str, raw_candidate: Any) -> Outcome:
        """
        Check a candidate week (plain JSON data) against the user's current week.

        Refused while a change is waiting for yes/no; nothing is changed then.
        """
        with self._lock(user_id):
            if storage.load_pending(user_id, self.base_dir) is not None:
                return Rejected(
                    REASON_CHANGE_PENDING,
                    "Another change is waiting for confirmation. Answer yes or no first.",
                )
            return self._reconcile(user_id, self.current_schedule(user_id), raw_candidate)

    def _reconcile(self, user_id: str, current: WeekSchedule, raw_candidate: Any) -> Outcome:
        try:
            candidate = parse_candidate(raw_candidate)
            validate_schedule(candidate)
            # stored blocks are compared too; a hand-edited bad time there also rejects
            report = detect_conflicts(current, candidate)
        except ValidationError as exc:
            logger.info("Rejected candidate for %s: %s (%s)", user_id, exc.code, exc)
            return Rejected(exc.code, str(exc))

        if candidate.week_start is None:
            candidate.week_start = current.week_start
        if candidate.timezone is None:
            candidate.timezone = current.timezone

        outcome = decide(report, candidate)
        logger.info("Reconciliation for %s: %s %s", user_id, outcome.outcome, report.counts())

        if isinstance(outcome, Accepted):
            return self._apply(user_id, candidate)

        if isinstance(outcome, NeedsConfirmation):
            pending = storage.PendingChange(
                candidate=candidate, conflicts=outcome.conflicts, message=outcome.message
            )
            storage.save_pending(user_id, pending, self.base_dir)
            outcome.token = pending.token

        return outcome

    def confirm(self, user_id: str, answer: str, token: Optional[str] = None) -> Outcome:
        """
        Answer the pending change. A token that does not match the pending
        change (it was superseded) is rejected and nothing changes.
        """
        with self._lock(user_id):
            return self._confirm(user_id, answer, token)

    def _confirm(self, user_id: str, answer: str, token: Optional[str]) -> Outcome:
        pending = storage.load_pending(user_id, self.base_dir)
        if pending is None:
            return Rejected(REASON_NOTHING_PENDING, "There is no change waiting for confirmation.")
        if token is not None and token != pending.token:
            logger.warning("Stale confirmation for %s (got %s, pending %s)", user_id, token, pending.token)
            return Rejected(REASON_STALE, "That change was replaced by a newer one. Nothing was applied.")

        outcome = resolve_answer(
            answer,
            NeedsConfirmation(
                message=pending.message,
                pending_candidate=pending.candidate,
                conflicts=pending.conflicts,
                token=pending.token,
            ),
        )
        if isinstance(outcome, Accepted):
            storage.clear_pending(user_id, self.base_dir)
            return self._apply(user_id, outcome.schedule)
        if isinstance(outcome, Rejected):
            storage.clear_pending(user_id, self.base_dir)
        return outcome

    def _apply(self, user_id: str, candidate: WeekSchedule) -> Accepted:
        stored = strip_classes(candidate)
        storage.save_schedule(user_id, stored, self.base_dir)
        return Accepted(merge_classes(stored, load_courses(user_id, self.base_dir)))

    # -----------------------------------------------------------------------
    # Direct edits
    # -----------------------------------------------------------------------

    def toggle_complete(self, user_id: str, day: str, index: int) -> WeekSchedule:
        """
        Flip 'completed' on a block of the merged view (index as shown to the
        user). Classes cannot be toggled.
        """
        if day not in DAY_NAMES:
            raise ValueError(f"Unknown day: {day!r}")
        with self._lock(user_id):
            view = self.current_schedule(user_id)
            blocks = view.blocks(day)
            if not (0 <= index < len(blocks)):
                raise IndexError(f"No block #{index} on {day}")
            block = blocks[index]
            if block.is_class:
                raise ValueError(f"{block.label()} is a class and cannot be marked completed")
            block.completed = not block.completed
            storage.save_schedule(user_id, view, self.base_dir)
            return view

    def clear(self, user_id: str) -> WeekSchedule:
        """
        Reset the stored week and drop any pending change.
        """
        with self._lock(user_id):
            storage.clear_pending(user_id, self.base_dir)
            stored = storage.delete_schedule(user_id, self.base_dir)
            return merge_classes(stored, load_courses(user_id, self.base_dir))
