"""
CLI (Command Line Interface).

This module provides quick terminal commands for power users and for testing, e.g.:

    myweek show
    myweek plan "add gym on monday at 19:00"
    myweek answer yes
    myweek check candidate.json
    myweek toggle Monday 2
    myweek clear
    myweek export <file.ics>
    myweek interactive

Note:
- The interactive UI lives in myweek/interactive.py
- This CLI prints plain text (no rich formatting); --json prints outcomes as JSON
- Exit codes: 0 ok / accepted / waiting for confirmation, 1 rejected or bad input,
  3 generator failure
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Any

from myweek.decision import Accepted, NeedsConfirmation, Outcome, Rejected
from myweek.engine import Reconciler
from myweek.errors import GeneratorError
from myweek.export_ics import export_week_to_ics
from myweek.model import DAY_NAMES, WeekSchedule


EXIT_GENERATOR_FAILURE = 3


def _block_line(index: int, block: Any) -> str:
    flags = []
    if block.is_class:
        flags.append("class")
    if block.completed:
        flags.append("done")
    suffix = f" [{', '.join(flags)}]" if flags else ""
    return f"  {index}. {block.start}-{block.end} {block.task} ({block.priority or '-'}){suffix}"


def print_week(schedule: WeekSchedule) -> None:
    for day in DAY_NAMES:
        blocks = schedule.blocks(day)
        print(f"{day}:")
        if not blocks:
            print("  (empty)")
        for i, b in enumerate(blocks):
            print(_block_line(i, b))


def _print_outcome(outcome: Outcome, as_json: bool) -> int:
    if as_json:
        print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
    elif isinstance(outcome, Accepted):
        print("Schedule updated.")
        print_week(outcome.schedule)
    elif isinstance(outcome, NeedsConfirmation):
        print(outcome.message)
        print("Answer with: myweek answer yes|no")
    else:
        print(f"Rejected ({outcome.reason_code}): {outcome.message}")

    return 1 if isinstance(outcome, Rejected) else 0


def _cmd_show(args: argparse.Namespace, engine: Reconciler) -> int:
    """
    Print the current week (classes merged in) and any pending change.
    """
    schedule = engine.current_schedule(args.user)
    if args.json:
        print(json.dumps(schedule.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print_week(schedule)
    pending = engine.pending(args.user)
    if pending is not None:
        print(f"\nPending change: {pending.message}")
    return 0


def _cmd_plan(args: argparse.Namespace, engine: Reconciler) -> int:
    """
    Send a free-text request to the generator and reconcile the answer.
    """
    text = (args.text or "").strip()
    if not text:
        print("Please provide a request text.")
        return 1

    try:
        outcome = engine.request_change(args.user, text, chronotype=args.chronotype)
    except GeneratorError as exc:
        print(f"Generator failed: {exc}")
        return EXIT_GENERATOR_FAILURE
    return _print_outcome(outcome, args.json)


def _cmd_answer(args: argparse.Namespace, engine: Reconciler) -> int:
    outcome = engine.confirm(args.user, args.answer, token=args.token)
    return _print_outcome(outcome, args.json)


def _cmd_check(args: argparse.Namespace, engine: Reconciler) -> int:
    """
    Reconcile a candidate week read from a JSON file (no generator involved).
    """
    path = Path(args.candidate)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        print(f"File not found: {path}")
        return 1
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        print(f"Could not read candidate: {exc}")
        return 1

    return _print_outcome(engine.reconcile(args.user, raw), args.json)


def _cmd_toggle(args: argparse.Namespace, engine: Reconciler) -> int:
    day = (args.day or "").strip().capitalize()
    try:
        schedule = engine.toggle_complete(args.user, day, args.index)
    except (ValueError, IndexError) as exc:
        print(str(exc))
        return 1
    block = schedule.blocks(day)[args.index]
    state = "done" if block.completed else "not done"
    print(f"{block.label()} on {day}: {state}")
    return 0


def _cmd_clear(args: argparse.Namespace, engine: Reconciler) -> int:
    engine.clear(args.user)
    print("Weekly schedule cleared. Classes are still shown from your courses.")
    return 0


def _cmd_export(args: argparse.Namespace, engine: Reconciler) -> int:
    """
    Export the current week into an iCalendar (.ics) file.
    """
    out_path = (args.out or "").strip()
    if not out_path:
        print("Please provide output .ics path.")
        return 1

    n = export_week_to_ics(engine.current_schedule(args.user), out_path)
    print(f"Exported {n} blocks to: {out_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="myweek", description="MyWeek CLI")
    parser.add_argument("--user", "-u", default=os.environ.get("MYWEEK_USER", "local"), help="User id")
    parser.add_argument("--data-dir", type=Path, default=None, help="Data directory (default: $MYWEEK_DATA_DIR)")
    parser.add_argument("--json", action="store_true", help="Print outcomes as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("show", help="Show the current week")

    p_plan = sub.add_parser("plan", help="Ask the generator for a schedule change")
    p_plan.add_argument("text", type=str, help="Request text (e.g. 'add gym on monday 19:00')")
    p_plan.add_argument("--chronotype", type=str, default=None, help="lion, bear, wolf or dolphin")

    p_answer = sub.add_parser("answer", help="Answer a pending confirmation")
    p_answer.add_argument("answer", type=str, help="yes or no")
    p_answer.add_argument("--token", type=str, default=None, help="Token of the pending change")

    p_check = sub.add_parser("check", help="Reconcile a candidate week from a JSON file")
    p_check.add_argument("candidate", type=str, help="Path to candidate JSON")

    p_toggle = sub.add_parser("toggle", help="Mark a task done / not done")
    p_toggle.add_argument("day", type=str, help="Day name (e.g. Monday)")
    p_toggle.add_argument("index", type=int, help="Block number as shown by 'show'")

    sub.add_parser("clear", help="Delete all tasks of the week")

    p_export = sub.add_parser("export", help="Export the week to .ics")
    p_export.add_argument("out", type=str, help="Output file path (e.g. week.ics)")

    p_inter = sub.add_parser("interactive", help="Interactive chat mode")
    p_inter.add_argument("--chronotype", type=str, default=None, help="lion, bear, wolf or dolphin")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    generator = None
    if args.command in ("plan", "interactive"):
        from myweek.generator import GeminiGenerator

        generator = GeminiGenerator()

    engine = Reconciler(base_dir=args.data_dir, generator=generator)

    if args.command == "show":
        raise SystemExit(_cmd_show(args, engine))
    if args.command == "plan":
        raise SystemExit(_cmd_plan(args, engine))
    if args.command == "answer":
        raise SystemExit(_cmd_answer(args, engine))
    if args.command == "check":
        raise SystemExit(_cmd_check(args, engine))
    if args.command == "toggle":
        raise SystemExit(_cmd_toggle(args, engine))
    if args.command == "clear":
        raise SystemExit(_cmd_clear(args, engine))
    if args.command == "export":
        raise SystemExit(_cmd_export(args, engine))

    if args.command == "interactive":
        from myweek.interactive import run_interactive

        run_interactive(engine, args.user, chronotype=args.chronotype)
        raise SystemExit(0)

    raise SystemExit(2)
