# users_api/mappers/user_mapper.py
"""Conversions between the API shapes and the ``User`` entity.

Everything here is pure: no I/O, and entities are never mutated. Updates
produce a new ``User``.
"""

from dataclasses import replace

from users_api.api.schemas.user_schema import (
    CreateUserRequest,
    UpdateUserRequest,
    UserPageResponse,
    UserResponse,
)
from users_api.core.pagination import Page
from users_api.entities.user import User


def to_entity(request: CreateUserRequest) -> User:
    return User(
        username=request.username,
        email=str(request.email),
        first_name=request.first_name,
        last_name=request.last_name,
        phone_number=request.phone_number,
        is_active=True,
    )


def to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone_number=user.phone_number,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def apply_update(user: User, request: UpdateUserRequest) -> User:
    """Return ``user`` with every field supplied in ``request`` overwritten.

    A field counts as supplied when the client sent it with a non-null value;
    omitted and null fields keep their current value.
    """
    changes = request.changes()
    if "email" in changes:
        changes["email"] = str(changes["email"])
    return replace(user, **changes)


def to_page_response(page: Page[User]) -> UserPageResponse:
    content = [to_response(u) for u in page.items]
    return UserPageResponse(
        content=content,
        total_elements=page.total,
        total_pages=page.total_pages,
        size=page.size,
        number=page.number,
        number_of_elements=len(content),
        first=page.is_first,
        last=page.is_last,
        empty=not content,
    )
