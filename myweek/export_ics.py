"""
iCalendar (.ics) export.

We convert one week (classes merged in) into a calendar file that can be
imported into:
- Google Calendar
- Outlook
- Apple Calendar

Each day name is placed on the first matching date on/after the week's
start date.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from myweek.model import DAY_NAMES, WeekSchedule


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dt_local(day: date, time_hh_mm: str) -> str:
    """
    Convert date + time to ICS local datetime string 'YYYYMMDDTHHMM00'.
    """
    dt = datetime.strptime(f"{day.isoformat()} {time_hh_mm.strip()}", "%Y-%m-%d %H:%M")
    return dt.strftime("%Y%m%dT%H%M00")


def day_dates(week_start: str | None) -> dict[str, date]:
    """
    Map each day name to a concrete date, starting from week_start
    (today if missing or invalid).
    """
    try:
        start = datetime.strptime(str(week_start), "%Y-%m-%d").date()
    except ValueError:
        start = date.today()
    out: dict[str, date] = {}
    for offset in range(7):
        d = start + timedelta(days=offset)
        out[DAY_NAMES[d.weekday()]] = d
    return out


def export_week_to_ics(schedule: WeekSchedule, out_path: str | Path) -> int:
    """
    Export a week to an .ics file. Returns number of exported blocks.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    dates = day_dates(schedule.week_start)

    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//MyWeek//EN")
    lines.append("CALSCALE:GREGORIAN")
    if schedule.timezone:
        lines.append(f"X-WR-TIMEZONE:{_ics_escape(schedule.timezone)}")

    count = 0
    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    for day, blocks in schedule.days.items():
        d = dates.get(day)
        if d is None:
            continue
        for i, b in enumerate(blocks):
            try:
                dtstart = _dt_local(d, b.start)
                dtend = _dt_local(d, b.end)
            except ValueError:
                continue

            lines.append("BEGIN:VEVENT")
            lines.append(f"UID:{_ics_escape(f'{d.isoformat()}-{i}-{dtstart}')}@myweek")
            lines.append(f"DTSTAMP:{dtstamp}")
            lines.append(f"DTSTART:{dtstart}")
            lines.append(f"DTEND:{dtend}")
            lines.append(f"SUMMARY:{_ics_escape(b.task or 'MyWeek Task')}")
            if b.priority:
                lines.append(f"DESCRIPTION:{_ics_escape(f'Priority: {b.priority}')}")
            if b.is_class:
                lines.append("CATEGORIES:CLASS")
            if b.completed:
                lines.append("STATUS:COMPLETED")
            lines.append("END:VEVENT")
            count += 1

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return count
