from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models
from .auth import get_current_token, get_current_user_id
from .config import settings
from .database import engine, get_db
from .schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TaskCreateRequest,
    TaskResponse,
    TaskUpdateRequest,
    TimeLogResponse,
    TimerRequest,
    UserResponse,
)
from .services import (
    authenticate_user,
    create_task,
    delete_task,
    get_user,
    list_tasks,
    list_time_logs,
    register_user,
    start_timer,
    stop_timer,
    update_task,
)
from .token_utils import revoke_token

logger = logging.getLogger(__name__)


def _apply_sqlite_migrations() -> None:
    """Bring databases created before the open-timer index up to date."""
    if engine.dialect.name != "sqlite":
        return
    inspector = inspect(engine)
    if "time_logs" not in inspector.get_table_names():
        return
    indexes = {index["name"] for index in inspector.get_indexes("time_logs")}
    if "uq_time_logs_open_timer" in indexes:
        return
    with engine.begin() as connection:
        # Close all but the newest open log per (user, task) before enforcing uniqueness.
        connection.execute(
            text(
                "UPDATE time_logs SET end_time = start_time, duration = 0 "
                "WHERE end_time IS NULL AND id NOT IN ("
                "SELECT MAX(id) FROM time_logs WHERE end_time IS NULL GROUP BY user_id, task_id)"
            )
        )
        connection.execute(
            text(
                "CREATE UNIQUE INDEX IF NOT EXISTS uq_time_logs_open_timer "
                "ON time_logs (user_id, task_id) WHERE end_time IS NULL"
            )
        )


models.Base.metadata.create_all(bind=engine)
_apply_sqlite_migrations()

app = FastAPI(title=settings.app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"message": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = str(first.get("msg", message)).removeprefix("Value error, ")
        message = f"{field}: {detail}" if field else detail
    return JSONResponse({"message": message}, status_code=status.HTTP_400_BAD_REQUEST)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"message": str(exc)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


router = APIRouter()


@router.post("/auth/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def auth_register(payload: RegisterRequest, db: Session = Depends(get_db)) -> AuthResponse:
    user, token_value = register_user(db, payload.name, payload.email, payload.password)
    return AuthResponse(token=token_value, user=UserResponse.model_validate(user))


@router.post("/auth/login", response_model=AuthResponse)
def auth_login(payload: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    user, token_value = authenticate_user(db, payload.email, payload.password)
    return AuthResponse(token=token_value, user=UserResponse.model_validate(user))


@router.get("/auth/me", response_model=UserResponse)
def auth_me(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)) -> UserResponse:
    return get_user(db, user_id)


@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
def auth_logout(
    token: models.AccessToken = Depends(get_current_token),
    db: Session = Depends(get_db),
) -> Response:
    revoke_token(db, token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def tasks_create(
    payload: TaskCreateRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> TaskResponse:
    return create_task(db, user_id, payload.title, payload.description)


@router.get("/tasks", response_model=list[TaskResponse])
def tasks_list(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)) -> list[TaskResponse]:
    return list_tasks(db, user_id)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
def tasks_update(
    task_id: int,
    payload: TaskUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> TaskResponse:
    changes = payload.model_dump(exclude_unset=True)
    return update_task(db, user_id, task_id, changes)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def tasks_delete(
    task_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Response:
    delete_task(db, user_id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/timelogs/start", response_model=TimeLogResponse, status_code=status.HTTP_201_CREATED)
def timelogs_start(
    payload: TimerRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> TimeLogResponse:
    return start_timer(db, user_id, payload.task_id)


@router.post("/timelogs/stop", response_model=TimeLogResponse)
def timelogs_stop(
    payload: TimerRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> TimeLogResponse:
    return stop_timer(db, user_id, payload.task_id)


@router.get("/timelogs", response_model=list[TimeLogResponse])
def timelogs_list(
    task_id: Optional[int] = Query(default=None, alias="taskId"),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> list[TimeLogResponse]:
    return list_time_logs(db, user_id, task_id)


app.include_router(router)
app.include_router(router, prefix="/api", include_in_schema=False)
