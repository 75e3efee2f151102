# users_api/infrastructure/database/session.py

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from users_api.config.settings import settings
from users_api.infrastructure.database.base_model import BaseModel

_engine: Engine | None = None

_SessionLocal = sessionmaker(
    autoflush=False,
    expire_on_commit=False,
)


def _build_engine(database_url: str, echo: bool) -> Engine:
    kwargs: dict = {"echo": echo, "pool_pre_ping": True}

    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # every session must see the same in-memory database
        if ":memory:" in database_url or database_url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:"):
            kwargs["poolclass"] = StaticPool

    return create_engine(database_url, **kwargs)


def init_engine(database_url: str | None = None, *, echo: bool | None = None) -> Engine:
    global _engine

    if _engine is not None:
        _engine.dispose()

    _engine = _build_engine(
        database_url or settings.database_url,
        settings.sql_echo if echo is None else echo,
    )
    _SessionLocal.configure(bind=_engine)
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        return init_engine()
    return _engine


def create_schema() -> None:
    import users_api.infrastructure.database.models  # noqa: F401

    BaseModel.metadata.create_all(get_engine())


def drop_schema() -> None:
    BaseModel.metadata.drop_all(get_engine())


@contextmanager
def db_session(*, read_only: bool = False) -> Iterator[Session]:
    get_engine()
    session: Session = _SessionLocal()
    try:
        yield session
        if read_only:
            session.rollback()
        else:
            session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
