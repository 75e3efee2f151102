from typing import Generic, TypeVar
from sqlalchemy.orm import Session

TEntity = TypeVar("TEntity")

class BaseRepository(Generic[TEntity]):
    def __init__(self, session: Session) -> None:
        self._session = session

    def rollback(self) -> None:
        self._session.rollback()
