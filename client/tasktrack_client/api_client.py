"""HTTP client for the TaskTrack API."""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from typing import Any, Optional
from urllib.parse import urljoin

import requests

from .models import DailySummary, Task, TimeLog
from .summary import summarize_day


class ApiError(RuntimeError):
    """Error raised for failed API calls."""

    def __init__(self, message: str, *, status_code: Optional[int] = None,
                 response: Optional[requests.Response] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class ApiClient:
    """Wraps the HTTP calls against the TaskTrack API."""

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: int = 15,
                 session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = urljoin(self.base_url, path.lstrip("/"))
        kwargs.setdefault("timeout", self.timeout)
        headers = kwargs.setdefault("headers", {})
        headers.update(self._headers())
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as exc:  # pragma: no cover - network errors
            raise ApiError(str(exc)) from exc

        if response.status_code >= 400:
            message = response.text
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("message"):
                message = body["message"]
            raise ApiError(
                f"API error {response.status_code}: {message}",
                status_code=response.status_code,
                response=response,
            )

        if response.headers.get("Content-Type", "").startswith("application/json"):
            return response.json()
        return None

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> str:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        return self.token

    def register(self, name: str, email: str, password: str) -> str:
        data = self._request(
            "POST", "/auth/register", json={"name": name, "email": email, "password": password}
        )
        self.token = data["token"]
        return self.token

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def list_tasks(self) -> list[Task]:
        data = self._request("GET", "/tasks") or []
        return [self._parse_task(item) for item in data]

    def create_task(self, title: str, description: Optional[str] = None) -> Task:
        payload = {"title": title, "description": description}
        return self._parse_task(self._request("POST", "/tasks", json=payload))

    def update_task(self, task_id: int, **changes: Any) -> Task:
        return self._parse_task(self._request("PUT", f"/tasks/{task_id}", json=changes))

    def delete_task(self, task_id: int) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------
    def start_timer(self, task_id: int) -> TimeLog:
        return self._parse_time_log(self._request("POST", "/timelogs/start", json={"taskId": task_id}))

    def stop_timer(self, task_id: int) -> TimeLog:
        return self._parse_time_log(self._request("POST", "/timelogs/stop", json={"taskId": task_id}))

    def list_time_logs(self, task_id: Optional[int] = None) -> list[TimeLog]:
        params = {"taskId": task_id} if task_id is not None else None
        data = self._request("GET", "/timelogs", params=params) or []
        return [self._parse_time_log(item) for item in data]

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------
    def daily_summary(self, day: dt.date, tz: dt.tzinfo | str = dt.timezone.utc) -> DailySummary:
        return summarize_day(self.list_tasks(), self.list_time_logs(), day, tz)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------
    @classmethod
    def _parse_task(cls, item: dict[str, Any]) -> Task:
        return Task(
            task_id=int(item["id"]),
            title=item.get("title", ""),
            status=item.get("status", "Pending"),
            created_at=cls._parse_datetime(item.get("createdAt"), "createdAt"),
            description=item.get("description"),
        )

    @classmethod
    def _parse_time_log(cls, item: dict[str, Any]) -> TimeLog:
        task = item.get("task") or {}
        return TimeLog(
            log_id=int(item["id"]),
            task_id=int(item.get("taskId", task.get("id", 0))),
            started_at=cls._parse_datetime(item.get("startTime"), "startTime"),
            ended_at=cls._parse_datetime(item.get("endTime"), "endTime", required=False),
            duration_minutes=item.get("duration"),
            task_title=task.get("title"),
        )

    @staticmethod
    def _parse_datetime(value: Optional[str], field: str, required: bool = True) -> Optional[datetime]:
        if not value:
            if required:
                raise ApiError(f"Missing {field} in API response")
            return None
        try:
            return datetime.fromisoformat(value)
        except (TypeError, ValueError) as exc:
            raise ApiError(f"Invalid {field} in API response: {value!r}") from exc


__all__ = ["ApiClient", "ApiError"]
