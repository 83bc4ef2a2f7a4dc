"""Data models for the TaskTrack client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


TASK_STATUSES = ("Pending", "In Progress", "Completed")


@dataclass(slots=True)
class Task:
    """A task as returned by ``GET /tasks``."""

    task_id: int
    title: str
    status: str
    created_at: datetime
    description: Optional[str] = None


@dataclass(slots=True)
class TimeLog:
    """A start/stop record; ``ended_at`` is ``None`` while the timer runs."""

    log_id: int
    task_id: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    task_title: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self.ended_at is None


@dataclass(slots=True)
class DailySummary:
    """Totals for one local calendar day."""

    day_start: datetime
    day_end: datetime
    total_minutes: int = 0
    completed_tasks: int = 0
    in_progress_tasks: int = 0
    pending_tasks: int = 0
    tasks: List[Task] = field(default_factory=list)
    time_logs: List[TimeLog] = field(default_factory=list)


__all__ = ["TASK_STATUSES", "Task", "TimeLog", "DailySummary"]
