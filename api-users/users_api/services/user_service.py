# users_api/services/user_service.py

from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.exc import IntegrityError

from users_api.api.schemas.user_schema import (
    CreateUserRequest,
    UpdateUserRequest,
    UserPageResponse,
    UserResponse,
)
from users_api.core.exceptions import UserAlreadyExistsError, UserNotFoundError
from users_api.core.logging import get_logger
from users_api.core.pagination import PageRequest
from users_api.entities.user import User
from users_api.mappers import user_mapper
from users_api.repositories.user_repository import UserRepository

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserService:
    def __init__(
        self,
        user_repository: UserRepository,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._user_repository = user_repository
        self._clock = clock

    def create_user(self, request: CreateUserRequest) -> UserResponse:
        logger.debug("Creating user", username=request.username)

        if self._user_repository.exists_by_username(request.username):
            raise UserAlreadyExistsError("username", request.username)

        if self._user_repository.exists_by_email(str(request.email)):
            raise UserAlreadyExistsError("email", str(request.email))

        now = self._clock()
        user = replace(user_mapper.to_entity(request), created_at=now, updated_at=now)
        saved = self._save(user)

        logger.info("User created", user_id=saved.id)
        return user_mapper.to_response(saved)

    def get_user_by_id(self, user_id: int) -> UserResponse:
        logger.debug("Fetching user", user_id=user_id)
        return user_mapper.to_response(self._require(user_id))

    def get_user_by_username(self, username: str) -> UserResponse:
        logger.debug("Fetching user by username", username=username)

        user = self._user_repository.find_by_username(username)
        if user is None:
            raise UserNotFoundError(username=username)
        return user_mapper.to_response(user)

    def list_users(self) -> list[UserResponse]:
        logger.debug("Listing all users")
        return [user_mapper.to_response(u) for u in self._user_repository.find_all()]

    def list_active_users(self) -> list[UserResponse]:
        logger.debug("Listing active users")
        return [user_mapper.to_response(u) for u in self._user_repository.find_by_active(True)]

    def search_users_by_name(self, name: str) -> list[UserResponse]:
        logger.debug("Searching users by name", name=name)
        return [user_mapper.to_response(u) for u in self._user_repository.search_by_name(name)]

    def list_users_filtered(
        self, *, active: bool | None = None, search: str | None = None
    ) -> list[UserResponse]:
        """Backs ``GET /users``: a search term wins over ``active``, and the
        two filters are never combined."""
        term = (search or "").strip()
        if term:
            return self.search_users_by_name(term)
        if active:
            return self.list_active_users()
        return self.list_users()

    def list_users_page(self, page_request: PageRequest) -> UserPageResponse:
        logger.debug(
            "Listing users page",
            page=page_request.page,
            size=page_request.size,
            sort_by=page_request.sort_by,
            direction=page_request.direction.value,
        )
        page = self._user_repository.find_page(page_request)
        return user_mapper.to_page_response(page)

    def update_user(self, user_id: int, request: UpdateUserRequest) -> UserResponse:
        logger.debug("Updating user", user_id=user_id)

        user = self._require(user_id)

        if (
            request.username is not None
            and request.username != user.username
            and self._user_repository.exists_by_username(request.username)
        ):
            raise UserAlreadyExistsError("username", request.username)

        if (
            request.email is not None
            and str(request.email) != user.email
            and self._user_repository.exists_by_email(str(request.email))
        ):
            raise UserAlreadyExistsError("email", str(request.email))

        updated = replace(user_mapper.apply_update(user, request), updated_at=self._clock())
        saved = self._save(updated)

        logger.info("User updated", user_id=saved.id)
        return user_mapper.to_response(saved)

    def delete_user(self, user_id: int) -> None:
        logger.debug("Deleting user", user_id=user_id)

        if not self._user_repository.exists_by_id(user_id):
            raise UserNotFoundError(user_id)

        self._user_repository.delete_by_id(user_id)
        logger.info("User deleted", user_id=user_id)

    def deactivate_user(self, user_id: int) -> UserResponse:
        return self._set_active(user_id, False)

    def activate_user(self, user_id: int) -> UserResponse:
        return self._set_active(user_id, True)

    # -------------------------
    # Helpers
    # -------------------------

    def _require(self, user_id: int) -> User:
        user = self._user_repository.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def _set_active(self, user_id: int, is_active: bool) -> UserResponse:
        action = "Activating" if is_active else "Deactivating"
        logger.debug(f"{action} user", user_id=user_id)

        user = self._require(user_id)
        saved = self._save(replace(user, is_active=is_active, updated_at=self._clock()))

        logger.info("User activation changed", user_id=saved.id, is_active=saved.is_active)
        return user_mapper.to_response(saved)

    def _save(self, user: User) -> User:
        # the exists_* checks above race with concurrent writers; the unique
        # constraints decide, and a lost race is reported like a normal conflict
        try:
            return self._user_repository.save(user)
        except IntegrityError as exc:
            self._user_repository.rollback()
            conflict = self._find_conflict(user)
            if conflict is None:
                raise
            logger.info("Unique constraint rejected write", field=conflict.field)
            raise conflict from exc

    def _find_conflict(self, user: User) -> UserAlreadyExistsError | None:
        holder = self._user_repository.find_by_username(user.username)
        if holder is not None and holder.id != user.id:
            return UserAlreadyExistsError("username", user.username)

        holder = self._user_repository.find_by_email(user.email)
        if holder is not None and holder.id != user.id:
            return UserAlreadyExistsError("email", user.email)

        return None
