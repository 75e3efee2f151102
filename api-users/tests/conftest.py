from __future__ import annotations

import os

# settings are read at import time; point them at a throwaway database first
os.environ["DB_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["AUTO_CREATE_SCHEMA"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_FORMAT"] = "console"
os.environ["APP_PREFIX"] = ""

from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Iterator  # noqa: E402

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from users_api.infrastructure.database.session import db_session, drop_schema  # noqa: E402
from users_api.main import create_app  # noqa: E402
from users_api.repositories.user_repository import UserRepository  # noqa: E402
from users_api.services.user_service import UserService  # noqa: E402


class TickingClock:
    """Returns a strictly increasing UTC time on every call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture()
def app() -> Iterator[Flask]:
    # a fresh in-memory database per app
    app = create_app()
    app.config["TESTING"] = True
    yield app
    drop_schema()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture()
def session(app: Flask) -> Iterator[Session]:
    with db_session() as session:
        yield session


@pytest.fixture()
def repository(session: Session) -> UserRepository:
    return UserRepository(session)


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture()
def service(repository: UserRepository, clock: TickingClock) -> UserService:
    return UserService(repository, clock=clock)
