from __future__ import annotations

import datetime as dt
from zoneinfo import ZoneInfo

from tasktrack_client.models import Task, TimeLog
from tasktrack_client.summary import day_window, format_minutes, summarize_day

UTC = dt.timezone.utc
DAY = dt.date(2024, 6, 3)


def _task(task_id: int, status: str, created_at: dt.datetime) -> Task:
    return Task(task_id=task_id, title=f"Task {task_id}", status=status, created_at=created_at)


def _log(log_id: int, started_at: dt.datetime, duration: int | None) -> TimeLog:
    ended_at = None if duration is None else started_at + dt.timedelta(minutes=duration)
    return TimeLog(log_id=log_id, task_id=1, started_at=started_at, ended_at=ended_at, duration_minutes=duration)


def test_running_log_contributes_nothing_and_statuses_are_counted():
    morning = dt.datetime(2024, 6, 3, 9, 0, tzinfo=UTC)
    tasks = [
        _task(1, "Pending", morning),
        _task(2, "Completed", morning),
        _task(3, "Completed", morning),
    ]
    logs = [_log(1, morning, 30), _log(2, morning, 45), _log(3, morning, None)]

    result = summarize_day(tasks, logs, DAY)

    assert result.total_minutes == 75
    assert result.completed_tasks == 2
    assert result.pending_tasks == 1
    assert result.in_progress_tasks == 0
    assert len(result.time_logs) == 3


def test_window_is_half_open():
    midnight = dt.datetime(2024, 6, 3, 0, 0, tzinfo=UTC)
    next_midnight = dt.datetime(2024, 6, 4, 0, 0, tzinfo=UTC)
    logs = [
        _log(1, midnight, 10),
        _log(2, next_midnight - dt.timedelta(microseconds=1), 20),
        _log(3, next_midnight, 40),
        _log(4, midnight - dt.timedelta(seconds=1), 80),
    ]
    tasks = [_task(1, "In Progress", next_midnight), _task(2, "In Progress", midnight)]

    result = summarize_day(tasks, logs, DAY)

    assert result.total_minutes == 30
    assert [task.task_id for task in result.tasks] == [2]
    assert result.in_progress_tasks == 1


def test_window_follows_local_time_zone():
    berlin = ZoneInfo("Europe/Berlin")
    # 23:30 UTC on June 2nd is already June 3rd in Berlin (UTC+2).
    late_utc = dt.datetime(2024, 6, 2, 23, 30, tzinfo=UTC)

    assert summarize_day([], [_log(1, late_utc, 15)], DAY, berlin).total_minutes == 15
    assert summarize_day([], [_log(1, late_utc, 15)], DAY, "UTC").total_minutes == 0


def test_day_window_bounds():
    start, end = day_window(DAY, UTC)
    assert start == dt.datetime(2024, 6, 3, tzinfo=UTC)
    assert end - start == dt.timedelta(days=1)


def test_format_minutes():
    assert format_minutes(0) == "0h 0m"
    assert format_minutes(75) == "1h 15m"
    assert format_minutes(600) == "10h 0m"
