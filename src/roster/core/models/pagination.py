"""Listing query and page models."""

import math

from pydantic import Field

from src.roster.entities._base import CamelModel
from src.roster.entities.user import User


class UserQuery(CamelModel):
    """Filter and window for a listing request."""

    page: int = Field(default=1, description="1-based page number")
    limit: int = Field(default=50, ge=1, description="Page size")
    search: str | None = Field(default=None, description="Free-text filter")
    is_active: bool | None = Field(default=None, description="Tri-state active filter")

    @property
    def start_index(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def end_index(self) -> int:
        return self.start_index + self.limit


class PageMetadata(CamelModel):
    """Pagination metadata returned alongside a page of users."""

    page: int
    limit: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def compute(cls, page: int, limit: int, total_items: int) -> "PageMetadata":
        total_pages = math.ceil(total_items / limit)
        return cls(
            page=page,
            limit=limit,
            total_items=total_items,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class UserPage(CamelModel):
    """One page window of the filtered roster."""

    data: list[User]
    metadata: PageMetadata
