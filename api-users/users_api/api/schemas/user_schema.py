# users_api/api/schemas/user_schema.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from users_api.api.schemas._datetime_serializer import serialize_dt
from users_api.core.pagination import SortDirection
from users_api.repositories.user_repository import SORTABLE_FIELDS


class CamelModel(BaseModel):
    # JSON uses camelCase, python code uses snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateUserRequest(CamelModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    phone_number: str | None = Field(default=None, max_length=20)


class UpdateUserRequest(CamelModel):
    """Partial update: only fields sent with a non-null value are applied."""

    username: str | None = Field(default=None, min_length=3, max_length=50)
    email: EmailStr | None = None
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    phone_number: str | None = Field(default=None, max_length=20)
    is_active: bool | None = None

    def changes(self) -> dict:
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }


class UserResponse(CamelModel):
    id: int
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_serializer("created_at", "updated_at")
    def serialize_dates(self, value: datetime | None):
        return serialize_dt(value)


class UserPageResponse(CamelModel):
    content: list[UserResponse]
    total_elements: int
    total_pages: int
    size: int
    number: int
    number_of_elements: int
    first: bool
    last: bool
    empty: bool


class UserListQuery(CamelModel):
    active: bool | None = None
    search: str | None = None

    @field_validator("active", mode="before")
    @classmethod
    def blank_active_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PageQuery(CamelModel):
    page: int = Field(default=0, ge=0)
    size: int = Field(default=10, ge=1)
    sort_by: str = "id"
    sort_dir: SortDirection = SortDirection.ASC

    @field_validator("sort_by", mode="before")
    @classmethod
    def normalize_sort_by(cls, v):
        if not isinstance(v, str):
            return v
        field = v.strip()
        snake = "".join(f"_{c.lower()}" if c.isupper() else c for c in field)
        if snake not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort users by '{field}'")
        return snake

    @field_validator("sort_dir", mode="before")
    @classmethod
    def parse_sort_dir(cls, v):
        if isinstance(v, str):
            return SortDirection.parse(v)
        return v
