"""Command line entry point for the TaskTrack client."""

from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from .api_client import ApiClient, ApiError
from .config import ClientConfig, load_config
from .summary import format_minutes

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tasktrack-client", description="Track tasks and time from the shell.")
    parser.add_argument("--base-url", help="API base URL (default from TASKTRACK_API_BASE_URL)")
    parser.add_argument("--token", help="Bearer token (default from TASKTRACK_API_TOKEN)")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Log in and print a token")
    login.add_argument("email")
    login.add_argument("password")

    sub.add_parser("tasks", help="List tasks")

    add = sub.add_parser("add", help="Create a task")
    add.add_argument("title")
    add.add_argument("--description")

    for name in ("start", "stop"):
        timer = sub.add_parser(name, help=f"{name.capitalize()} the timer of a task")
        timer.add_argument("task_id", type=int)

    logs = sub.add_parser("logs", help="List time logs")
    logs.add_argument("--task-id", type=int)

    summary = sub.add_parser("summary", help="Show the daily summary")
    summary.add_argument("--day", type=dt.date.fromisoformat, help="ISO date, defaults to today")
    return parser


def run(argv: Optional[Sequence[str]] = None, config: Optional[ClientConfig] = None,
        client: Optional[ApiClient] = None) -> int:
    args = _build_parser().parse_args(argv)
    config = config or load_config()
    client = client or ApiClient(
        args.base_url or config.api_base_url,
        token=args.token or config.api_token,
        timeout=config.timeout_seconds,
    )
    tz = ZoneInfo(config.timezone)

    try:
        if args.command == "login":
            print(client.login(args.email, args.password))
        elif args.command == "tasks":
            for task in client.list_tasks():
                print(f"{task.task_id}\t{task.status}\t{task.title}")
        elif args.command == "add":
            task = client.create_task(args.title, args.description)
            print(f"Created task {task.task_id}: {task.title}")
        elif args.command == "start":
            log = client.start_timer(args.task_id)
            print(f"Timer started at {log.started_at.astimezone(tz):%H:%M}")
        elif args.command == "stop":
            log = client.stop_timer(args.task_id)
            print(f"Timer stopped after {format_minutes(log.duration_minutes or 0)}")
        elif args.command == "logs":
            for log in client.list_time_logs(args.task_id):
                duration = "running" if log.is_running else format_minutes(log.duration_minutes or 0)
                print(f"{log.started_at.astimezone(tz):%Y-%m-%d %H:%M}\t{duration}\t{log.task_title or log.task_id}")
        elif args.command == "summary":
            day = args.day or dt.datetime.now(tz).date()
            result = client.daily_summary(day, tz)
            print(f"Summary for {day.isoformat()}")
            print(f"  Time tracked:  {format_minutes(result.total_minutes)}")
            print(f"  Completed:     {result.completed_tasks}")
            print(f"  In progress:   {result.in_progress_tasks}")
            print(f"  Pending:       {result.pending_tasks}")
    except ApiError as exc:
        logger.debug("API call failed", exc_info=True)
        print(str(exc), file=sys.stderr)
        return 1
    return 0


def main() -> None:
    """Run the command line client."""

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    sys.exit(run())


__all__ = ["main", "run"]
