from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .models import DEFAULT_TASK_STATUS, TASK_STATUSES, Task, TimeLog, User
from .token_utils import create_token, hash_password, verify_password

logger = logging.getLogger(__name__)

UTC = dt.timezone.utc

TASK_UPDATE_FIELDS = ("title", "description", "status")


def _now() -> dt.datetime:
    return dt.datetime.now(UTC)


def _ensure_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# ----------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------
def register_user(db: Session, name: str, email: str, password: str) -> Tuple[User, str]:
    existing = db.query(User).filter(User.email == email).one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")
    user = User(name=name, email=email, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists") from exc
    db.refresh(user)
    _token, token_value = create_token(db, user)
    logger.info("Registered user %s", user.id)
    return user, token_value


def authenticate_user(db: Session, email: str, password: str) -> Tuple[User, str]:
    user = db.query(User).filter(User.email == email).one_or_none()
    if not user or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for %s", email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    _token, token_value = create_token(db, user)
    return user, token_value


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# ----------------------------------------------------------------------
# Tasks
# ----------------------------------------------------------------------
def _get_owned_task(db: Session, user_id: int, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id, Task.user_id == user_id).one_or_none()
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


def list_tasks(db: Session, user_id: int) -> List[Task]:
    return (
        db.query(Task)
        .filter(Task.user_id == user_id)
        .order_by(Task.created_at.desc(), Task.id.desc())
        .all()
    )


def create_task(
    db: Session,
    user_id: int,
    title: str,
    description: Optional[str] = None,
    created_at: Optional[dt.datetime] = None,
) -> Task:
    title = (title or "").strip()
    if not title:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")
    task = Task(
        user_id=user_id,
        title=title,
        description=description,
        status=DEFAULT_TASK_STATUS,
    )
    if created_at is not None:
        task.created_at = _ensure_utc(created_at)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(db: Session, user_id: int, task_id: int, changes: Dict[str, Any]) -> Task:
    task = _get_owned_task(db, user_id, task_id)
    unknown = set(changes) - set(TASK_UPDATE_FIELDS)
    if unknown:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported task fields")
    if "title" in changes:
        title = (changes["title"] or "").strip()
        if not title:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")
        task.title = title
    if "description" in changes:
        task.description = changes["description"]
    if "status" in changes:
        if changes["status"] not in TASK_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown task status")
        task.status = changes["status"]
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, user_id: int, task_id: int) -> None:
    task = _get_owned_task(db, user_id, task_id)
    # Time logs go with the task, including a running one.
    db.delete(task)
    db.commit()
    logger.info("Deleted task %s for user %s", task_id, user_id)


# ----------------------------------------------------------------------
# Timers
# ----------------------------------------------------------------------
def get_open_time_log(db: Session, user_id: int, task_id: int) -> Optional[TimeLog]:
    return (
        db.query(TimeLog)
        .filter(
            TimeLog.user_id == user_id,
            TimeLog.task_id == task_id,
            TimeLog.end_time.is_(None),
        )
        .one_or_none()
    )


def start_timer(db: Session, user_id: int, task_id: int, now: Optional[dt.datetime] = None) -> TimeLog:
    task = _get_owned_task(db, user_id, task_id)
    time_log = TimeLog(
        user_id=user_id,
        task_id=task.id,
        start_time=_ensure_utc(now) if now else _now(),
    )
    db.add(time_log)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # Only uq_time_logs_open_timer maps to a conflict; other failures propagate.
        if get_open_time_log(db, user_id, task_id) is None:
            raise
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Timer already running for this task",
        ) from exc
    db.refresh(time_log)
    logger.info("Started timer %s on task %s for user %s", time_log.id, task_id, user_id)
    return time_log


def _no_running_timer() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="No running timer found for this task",
    )


def stop_timer(db: Session, user_id: int, task_id: int, now: Optional[dt.datetime] = None) -> TimeLog:
    time_log = get_open_time_log(db, user_id, task_id)
    if not time_log:
        raise _no_running_timer()
    # Conditional write: a log closed by a concurrent stop is left untouched.
    closed = (
        db.query(TimeLog)
        .filter(TimeLog.id == time_log.id, TimeLog.end_time.is_(None))
        .update(time_log.stop_values(now or _now()), synchronize_session=False)
    )
    if not closed:
        db.rollback()
        raise _no_running_timer()
    db.commit()
    db.refresh(time_log)
    logger.info(
        "Stopped timer %s on task %s for user %s after %s min",
        time_log.id,
        task_id,
        user_id,
        time_log.duration,
    )
    return time_log


def list_time_logs(db: Session, user_id: int, task_id: Optional[int] = None) -> List[TimeLog]:
    query = db.query(TimeLog).options(joinedload(TimeLog.task)).filter(TimeLog.user_id == user_id)
    if task_id is not None:
        query = query.filter(TimeLog.task_id == task_id)
    return query.order_by(TimeLog.start_time.desc(), TimeLog.id.desc()).all()
