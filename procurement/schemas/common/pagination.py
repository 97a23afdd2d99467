"""
Pagination schemas for page-based responses.
"""

from __future__ import annotations

from typing import Generic, List, TypeVar

from pydantic import Field

from procurement.repositories.base.pagination import PageInfo
from procurement.schemas.common.base import BaseSchema

T = TypeVar("T")

__all__ = [
    "PaginationMeta",
    "PaginatedResponse",
]


class PaginationMeta(BaseSchema):
    """Pagination metadata."""

    total_items: int = Field(..., ge=0, description="Total number of items")
    page: int = Field(..., ge=1, description="Current page number")
    per_page: int = Field(..., ge=1, description="Items per page")
    total_pages: int = Field(..., ge=0, description="Total number of pages")

    @classmethod
    def from_page_info(cls, page_info: PageInfo) -> "PaginationMeta":
        return cls(**page_info.to_dict())


class PaginatedResponse(BaseSchema, Generic[T]):
    """Generic paginated response."""

    items: List[T] = Field(..., description="List of items")
    pagination: PaginationMeta
