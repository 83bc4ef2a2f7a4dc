from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

_TEST_DATA_DIR = Path(tempfile.mkdtemp(prefix="tasktrack-tests-"))
os.environ.setdefault("TT_SQLITE_PATH", str(_TEST_DATA_DIR / "bootstrap.db"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from tasktrack import models
from tasktrack.config import settings
from tasktrack.database import get_db
from tasktrack.main import app


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch) -> None:
    monkeypatch.setattr(settings, "password_iterations", 1000)


@pytest.fixture(scope="function")
def engine(tmp_path: Path):
    url = f"sqlite:///{tmp_path / 'test.db'}"
    engine = create_engine(url, connect_args={"check_same_thread": False}, future=True)
    models.Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session(engine) -> Generator[Session, None, None]:
    SessionTesting = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = SessionTesting()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def register(client: TestClient) -> Callable[..., Dict[str, str]]:
    def _register(email: str = "ada@example.com", name: str = "Ada", password: str = "s3cret-pass") -> Dict[str, str]:
        response = client.post("/auth/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _register


@pytest.fixture()
def auth_headers(register) -> Dict[str, str]:
    return register()


@pytest.fixture()
def user(session: Session) -> models.User:
    user = models.User(name="Grace", email="grace@example.com", password_hash="x")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user
