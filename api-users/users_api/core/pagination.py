# users_api/core/pagination.py

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, raw: str) -> "SortDirection":
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise ValueError(f"Invalid sort direction '{raw}'; expected 'asc' or 'desc'") from None


@dataclass(frozen=True)
class PageRequest:
    page: int = 0
    size: int = 10
    sort_by: str = "id"
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        if self.page < 0:
            raise ValueError("page must not be negative")
        if self.size < 1:
            raise ValueError("size must be at least 1")

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass(frozen=True)
class Page(Generic[T]):
    """A slice of an ordered result plus the size of the whole result."""

    items: list[T]
    total: int
    request: PageRequest

    @property
    def number(self) -> int:
        return self.request.page

    @property
    def size(self) -> int:
        return self.request.size

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.request.size) if self.total else 0

    @property
    def is_first(self) -> bool:
        return self.request.page == 0

    @property
    def is_last(self) -> bool:
        return self.request.page + 1 >= self.total_pages

    def map(self, fn: Callable[[T], R]) -> "Page[R]":
        return Page(items=[fn(item) for item in self.items], total=self.total, request=self.request)
