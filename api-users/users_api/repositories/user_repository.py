# users_api/repositories/user_repository.py

from datetime import datetime, timezone

from sqlalchemy import delete, exists, func, or_, select
from sqlalchemy.orm import Session

from users_api.core.base_repository import BaseRepository
from users_api.core.exceptions import UserNotFoundError
from users_api.core.pagination import Page, PageRequest, SortDirection
from users_api.entities.user import User
from users_api.infrastructure.database.models.user_model import UserModel

_SORTABLE_COLUMNS = {
    "id": UserModel.id,
    "username": UserModel.username,
    "email": UserModel.email,
    "first_name": UserModel.first_name,
    "last_name": UserModel.last_name,
    "phone_number": UserModel.phone_number,
    "is_active": UserModel.is_active,
    "created_at": UserModel.created_at,
    "updated_at": UserModel.updated_at,
}

SORTABLE_FIELDS = frozenset(_SORTABLE_COLUMNS)


def _as_utc(value: datetime | None) -> datetime | None:
    # sqlite hands timestamps back without tzinfo; they are always stored as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_entity(model: UserModel) -> User:
    return User(
        id=int(model.id),
        username=model.username,
        email=model.email,
        first_name=model.first_name,
        last_name=model.last_name,
        phone_number=model.phone_number,
        is_active=bool(model.is_active),
        created_at=_as_utc(model.created_at),
        updated_at=_as_utc(model.updated_at),
    )


class UserRepository(BaseRepository[User]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def exists_by_id(self, user_id: int) -> bool:
        stmt = select(exists().where(UserModel.id == user_id))
        return bool(self._session.execute(stmt).scalar())

    def exists_by_username(self, username: str) -> bool:
        stmt = select(exists().where(UserModel.username == username))
        return bool(self._session.execute(stmt).scalar())

    def exists_by_email(self, email: str) -> bool:
        stmt = select(exists().where(UserModel.email == email))
        return bool(self._session.execute(stmt).scalar())

    def find_by_id(self, user_id: int) -> User | None:
        model = self._session.get(UserModel, user_id)
        return _to_entity(model) if model is not None else None

    def find_by_username(self, username: str) -> User | None:
        stmt = select(UserModel).where(UserModel.username == username)
        model = self._session.execute(stmt).scalar_one_or_none()
        return _to_entity(model) if model is not None else None

    def find_by_email(self, email: str) -> User | None:
        stmt = select(UserModel).where(UserModel.email == email)
        model = self._session.execute(stmt).scalar_one_or_none()
        return _to_entity(model) if model is not None else None

    def find_all(self) -> list[User]:
        stmt = select(UserModel).order_by(UserModel.id.asc())
        return [_to_entity(m) for m in self._session.execute(stmt).scalars().all()]

    def find_by_active(self, is_active: bool) -> list[User]:
        stmt = (
            select(UserModel)
            .where(UserModel.is_active.is_(is_active))
            .order_by(UserModel.id.asc())
        )
        return [_to_entity(m) for m in self._session.execute(stmt).scalars().all()]

    def search_by_name(self, name: str) -> list[User]:
        stmt = (
            select(UserModel)
            .where(
                or_(
                    UserModel.first_name.contains(name, autoescape=True),
                    UserModel.last_name.contains(name, autoescape=True),
                )
            )
            .order_by(UserModel.id.asc())
        )
        return [_to_entity(m) for m in self._session.execute(stmt).scalars().all()]

    def find_page(self, page_request: PageRequest) -> Page[User]:
        column = _SORTABLE_COLUMNS.get(page_request.sort_by)
        if column is None:
            raise ValueError(f"Cannot sort users by '{page_request.sort_by}'")

        if page_request.direction is SortDirection.DESC:
            order = [column.desc(), UserModel.id.desc()]
        else:
            order = [column.asc(), UserModel.id.asc()]

        stmt = (
            select(UserModel)
            .order_by(*order)
            .limit(page_request.size)
            .offset(page_request.offset)
        )
        items = [_to_entity(m) for m in self._session.execute(stmt).scalars().all()]

        return Page(items=items, total=self.count(), request=page_request)

    def count(self) -> int:
        stmt = select(func.count(UserModel.id))
        return int(self._session.execute(stmt).scalar_one())

    def save(self, user: User) -> User:
        if user.is_new:
            model = UserModel(
                username=user.username,
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
                phone_number=user.phone_number,
                is_active=user.is_active,
                created_at=user.created_at,
                updated_at=user.updated_at,
            )
            self._session.add(model)
        else:
            model = self._session.get(UserModel, user.id)
            if model is None:
                raise UserNotFoundError(user.id)

            # id and created_at are fixed at insert
            model.username = user.username
            model.email = user.email
            model.first_name = user.first_name
            model.last_name = user.last_name
            model.phone_number = user.phone_number
            model.is_active = user.is_active
            model.updated_at = user.updated_at

        self._session.flush()
        return _to_entity(model)

    def delete_by_id(self, user_id: int) -> None:
        self._session.execute(delete(UserModel).where(UserModel.id == user_id))
