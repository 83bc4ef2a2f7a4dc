from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from typing_extensions import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer


TaskStatus = Literal["Pending", "In Progress", "Completed"]


def _serialize_datetime(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    else:
        value = value.astimezone(dt.timezone.utc)
    return value.isoformat()


def _require_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        raise ValueError("Title is required")
    return stripped


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    email: str
    created_at: dt.datetime

    @model_serializer(mode="plain", when_used="json")
    def _serialize(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "createdAt": _serialize_datetime(self.created_at),
        }


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Name is required")
        return stripped

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if "@" not in normalized:
            raise ValueError("Please provide a valid email")
        return normalized


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class AuthResponse(BaseModel):
    token: str
    user: UserResponse

    @model_serializer(mode="plain", when_used="json")
    def _serialize(self) -> dict[str, Any]:
        return {"token": self.token, "user": self.user._serialize()}


class TaskCreateRequest(BaseModel):
    title: str
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: str) -> str:
        return _require_title(value)


class TaskUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None

    # Defaults are not validated, so these only fire for explicit values.
    @field_validator("title")
    @classmethod
    def _check_title(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("Title is required")
        return _require_title(value)

    @field_validator("status")
    @classmethod
    def _check_status(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("Status cannot be empty")
        return value


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    user_id: int
    title: str
    description: Optional[str]
    status: str
    created_at: dt.datetime
    updated_at: dt.datetime

    @model_serializer(mode="plain", when_used="json")
    def _serialize(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user": self.user_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "createdAt": _serialize_datetime(self.created_at),
            "updatedAt": _serialize_datetime(self.updated_at),
        }


class TimerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    task_id: int = Field(alias="taskId")


class TaskRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    title: str


class TimeLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    user_id: int
    task_id: int
    task: Optional[TaskRef] = None
    start_time: dt.datetime
    end_time: Optional[dt.datetime]
    duration: Optional[int]

    @model_serializer(mode="plain", when_used="json")
    def _serialize(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user": self.user_id,
            "taskId": self.task_id,
            "task": {"id": self.task.id, "title": self.task.title} if self.task else None,
            "startTime": _serialize_datetime(self.start_time),
            "endTime": _serialize_datetime(self.end_time) if self.end_time else None,
            "duration": self.duration,
        }
