from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from myweek.decision import Accepted, NeedsConfirmation
from myweek.engine import Reconciler
from myweek.errors import GeneratorError
from myweek.model import DAY_NAMES, TimeBlock, WeekSchedule


console = Console()

PRIORITY_STYLE = {"high": "red", "medium": "yellow", "low": "green"}


def _block_cell(b: TimeBlock) -> str:
    style = PRIORITY_STYLE.get(b.priority or "", "white")
    task = f"[bold cyan]{b.task}[/]" if b.is_class else b.task
    if b.completed:
        task = f"[strike]{task}[/]"
    return f"{b.start}-{b.end} {task} [{style}]{b.priority or ''}[/]"


def render_week(schedule: WeekSchedule) -> Table:
    table = Table(title="Weekly schedule", box=box.SIMPLE)
    for day in DAY_NAMES:
        table.add_column(day[:3])
    max_len = max((len(schedule.blocks(d)) for d in DAY_NAMES), default=0)
    for r in range(max_len):
        row = []
        for day in DAY_NAMES:
            blocks = schedule.blocks(day)
            row.append(_block_cell(blocks[r]) if r < len(blocks) else "")
        table.add_row(*row)
    return table


def run_interactive(engine: Reconciler, user_id: str, chronotype: Optional[str] = None) -> None:
    """
    Chat loop: every line is a schedule request, or the yes/no answer while
    a change is waiting for confirmation.
    """
    history: list[dict[str, str]] = []

    console.print("\n=== MyWeek (interactive) ===")
    console.print("Type a request (e.g. 'add gym on monday 19:00-20:00'), 'show', or blank to exit.")
    console.print(render_week(engine.current_schedule(user_id)))

    while True:
        text = console.input("\n> ").strip()
        if not text:
            console.print("Bye.")
            return
        if text.lower() == "show":
            console.print(render_week(engine.current_schedule(user_id)))
            continue

        history.append({"role": "user", "content": text})
        try:
            outcome = engine.request_change(user_id, text, history=history, chronotype=chronotype)
        except GeneratorError as exc:
            console.print(f"[red]Generator failed:[/] {exc}")
            continue

        if isinstance(outcome, Accepted):
            reply = "Schedule updated."
            console.print(f"[green]{reply}[/]")
            console.print(render_week(outcome.schedule))
        elif isinstance(outcome, NeedsConfirmation):
            reply = outcome.message
            console.print(f"[yellow]{reply}[/]")
        else:
            reply = outcome.message
            console.print(f"[red]{reply}[/]")
        history.append({"role": "assistant", "content": reply})
