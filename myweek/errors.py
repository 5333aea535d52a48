"""
Error taxonomy.

Two families:
- ValidationError: the candidate schedule is not even well-typed
  (bad time string, unknown priority, broken structure). These end a
  reconciliation as a rejection before conflict detection runs.
- GeneratorError: the external schedule generator failed. This is an
  infrastructure fault, not a scheduling conflict.

Scheduling conflicts (overlaps, class changes, priority downgrades) are
NOT exceptions; they live in model.ConflictReport.
"""

from __future__ import annotations


class MyWeekError(Exception):
    """Base class for all project errors."""

    code = "error"


class ValidationError(MyWeekError):
    code = "validation_error"


class MalformedTimeError(ValidationError):
    code = "malformed_time"


class InvalidIntervalError(ValidationError):
    code = "invalid_interval"


class InvalidPriorityError(ValidationError):
    code = "invalid_priority"


class MalformedScheduleError(ValidationError):
    code = "malformed_schedule"


class GeneratorError(MyWeekError):
    code = "generator_failure"


class GeneratorUnavailableError(GeneratorError):
    code = "generator_unavailable"


class GeneratorParseError(GeneratorError):
    code = "generator_parse_error"


class GeneratorRefusedError(GeneratorError):
    """
    The generator answered with an explicit error object instead of a schedule
    (e.g. the user asked it to move a class).
    """

    code = "generator_refused"
