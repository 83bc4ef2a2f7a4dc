from __future__ import annotations

import datetime as dt
from typing import Any, List, Optional

import pytest

from tasktrack_client.api_client import ApiClient, ApiError
from tasktrack_client.app import run
from tasktrack_client.config import ClientConfig


class FakeResponse:
    def __init__(self, status_code: int, body: Any = None) -> None:
        self.status_code = status_code
        self._body = body
        self.headers = {"Content-Type": "application/json"} if body is not None else {}
        self.text = "" if body is None else str(body)

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("no body")
        return self._body


class FakeSession:
    def __init__(self, responses: dict[tuple[str, str], FakeResponse]) -> None:
        self.responses = responses
        self.calls: List[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        path = "/" + url.split("://", 1)[1].split("/", 1)[1]
        return self.responses[(method, path)]


TASKS = [
    {"id": 1, "user": 7, "title": "Write", "description": None, "status": "Completed",
     "createdAt": "2024-06-03T08:00:00+00:00", "updatedAt": "2024-06-03T08:00:00+00:00"},
    {"id": 2, "user": 7, "title": "Read", "description": None, "status": "Pending",
     "createdAt": "2024-06-02T08:00:00+00:00", "updatedAt": "2024-06-02T08:00:00+00:00"},
]

LOGS = [
    {"id": 11, "user": 7, "taskId": 1, "task": {"id": 1, "title": "Write"},
     "startTime": "2024-06-03T10:00:00+00:00", "endTime": None, "duration": None},
    {"id": 10, "user": 7, "taskId": 1, "task": {"id": 1, "title": "Write"},
     "startTime": "2024-06-03T09:00:00+00:00", "endTime": "2024-06-03T09:45:00+00:00", "duration": 45},
]


def _client(responses: dict, token: Optional[str] = "tok") -> tuple[ApiClient, FakeSession]:
    session = FakeSession(responses)
    return ApiClient("http://api.test/api", token=token, session=session), session


def test_requests_carry_bearer_token_and_base_path():
    client, session = _client({("GET", "/api/tasks"): FakeResponse(200, TASKS)})

    tasks = client.list_tasks()

    assert [task.task_id for task in tasks] == [1, 2]
    assert tasks[0].created_at == dt.datetime(2024, 6, 3, 8, tzinfo=dt.timezone.utc)
    assert session.calls[0]["headers"]["Authorization"] == "Bearer tok"


def test_start_timer_posts_task_id():
    client, session = _client({("POST", "/api/timelogs/start"): FakeResponse(201, LOGS[0])})

    log = client.start_timer(1)

    assert session.calls[0]["json"] == {"taskId": 1}
    assert log.is_running
    assert log.task_title == "Write"


def test_error_message_is_surfaced():
    client, _ = _client(
        {("POST", "/api/timelogs/start"): FakeResponse(400, {"message": "Timer already running for this task"})}
    )

    with pytest.raises(ApiError) as excinfo:
        client.start_timer(1)

    assert excinfo.value.status_code == 400
    assert "Timer already running for this task" in str(excinfo.value)


def test_login_stores_token():
    client, _ = _client({("POST", "/api/auth/login"): FakeResponse(200, {"token": "fresh", "user": {}})}, token=None)
    assert client.login("ada@example.com", "pw") == "fresh"
    assert client.token == "fresh"


def test_daily_summary_combines_both_lists():
    client, _ = _client(
        {
            ("GET", "/api/tasks"): FakeResponse(200, TASKS),
            ("GET", "/api/timelogs"): FakeResponse(200, LOGS),
        }
    )

    summary = client.daily_summary(dt.date(2024, 6, 3))

    assert summary.total_minutes == 45
    assert summary.completed_tasks == 1
    assert summary.pending_tasks == 0


def test_cli_summary_prints_totals(capsys):
    client, _ = _client(
        {
            ("GET", "/api/tasks"): FakeResponse(200, TASKS),
            ("GET", "/api/timelogs"): FakeResponse(200, LOGS),
        }
    )

    code = run(["summary", "--day", "2024-06-03"], config=ClientConfig(timezone="UTC"), client=client)

    out = capsys.readouterr().out
    assert code == 0
    assert "Time tracked:  0h 45m" in out
    assert "Completed:     1" in out


def test_cli_reports_api_errors(capsys):
    client, _ = _client({("POST", "/api/timelogs/stop"): FakeResponse(404, {"message": "No running timer found for this task"})})

    code = run(["stop", "1"], config=ClientConfig(timezone="UTC"), client=client)

    assert code == 1
    assert "No running timer found for this task" in capsys.readouterr().err


def test_malformed_timestamp_raises_api_error():
    broken = [dict(LOGS[1], startTime="yesterday-ish")]
    client, _ = _client({("GET", "/api/timelogs"): FakeResponse(200, broken)})

    with pytest.raises(ApiError) as excinfo:
        client.list_time_logs()

    assert "startTime" in str(excinfo.value)


def test_cli_reports_malformed_timestamps(capsys):
    broken = [dict(TASKS[0], createdAt=None)]
    client, _ = _client(
        {
            ("GET", "/api/tasks"): FakeResponse(200, broken),
            ("GET", "/api/timelogs"): FakeResponse(200, LOGS),
        }
    )

    code = run(["summary", "--day", "2024-06-03"], config=ClientConfig(timezone="UTC"), client=client)

    assert code == 1
    assert "Missing createdAt in API response" in capsys.readouterr().err
