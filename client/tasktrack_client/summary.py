"""Daily aggregation over already fetched tasks and time logs."""

from __future__ import annotations

import datetime as dt
from typing import Iterable, Tuple
from zoneinfo import ZoneInfo

from .models import DailySummary, Task, TimeLog


def day_window(day: dt.date, tz: dt.tzinfo) -> Tuple[dt.datetime, dt.datetime]:
    """Return the half-open interval [local midnight, next local midnight)."""
    start = dt.datetime.combine(day, dt.time.min, tzinfo=tz)
    end = dt.datetime.combine(day + dt.timedelta(days=1), dt.time.min, tzinfo=tz)
    return start, end


def _in_window(value: dt.datetime | None, start: dt.datetime, end: dt.datetime) -> bool:
    if value is None:
        return False
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return start <= value < end


def summarize_day(
    tasks: Iterable[Task],
    time_logs: Iterable[TimeLog],
    day: dt.date,
    tz: dt.tzinfo | str = dt.timezone.utc,
) -> DailySummary:
    """Fold the tasks created and the time logs started on ``day``.

    Running logs have no duration yet and contribute 0 minutes.
    """
    if isinstance(tz, str):
        tz = ZoneInfo(tz)
    start, end = day_window(day, tz)
    day_tasks = [task for task in tasks if _in_window(task.created_at, start, end)]
    day_logs = [log for log in time_logs if _in_window(log.started_at, start, end)]
    return DailySummary(
        day_start=start,
        day_end=end,
        total_minutes=sum(log.duration_minutes or 0 for log in day_logs),
        completed_tasks=sum(1 for task in day_tasks if task.status == "Completed"),
        in_progress_tasks=sum(1 for task in day_tasks if task.status == "In Progress"),
        pending_tasks=sum(1 for task in day_tasks if task.status == "Pending"),
        tasks=day_tasks,
        time_logs=day_logs,
    )


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m"


__all__ = ["day_window", "summarize_day", "format_minutes"]
