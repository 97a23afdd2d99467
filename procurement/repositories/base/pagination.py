"""
Offset pagination for select() statements.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

T = TypeVar("T")


@dataclass
class PageInfo:
    """Pagination metadata."""

    current_page: int
    per_page: int
    total_items: int
    total_pages: int

    @property
    def start_index(self) -> int:
        """Get starting index for current page."""
        return (self.current_page - 1) * self.per_page

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_items": self.total_items,
            "page": self.current_page,
            "per_page": self.per_page,
            "total_pages": self.total_pages,
        }


@dataclass
class PaginatedResult(Generic[T]):
    """Paginated query result."""

    items: List[T]
    page_info: PageInfo


def paginate(db: Session, stmt: Select, page: int, per_page: int) -> PaginatedResult:
    """
    Run ``stmt`` for one page and count the full result set.

    ``stmt`` should already carry its ordering; ``page`` is 1-based.

    Args:
        db: Database session
        stmt: Entity select statement
        page: Page number, clamped to at least 1
        per_page: Page size, clamped to at least 1

    Returns:
        PaginatedResult with the page's entities and metadata
    """
    page = max(page, 1)
    per_page = max(per_page, 1)

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total_items = db.scalar(count_stmt) or 0

    page_info = PageInfo(
        current_page=page,
        per_page=per_page,
        total_items=total_items,
        total_pages=math.ceil(total_items / per_page) if total_items else 0,
    )
    items = list(
        db.scalars(stmt.offset(page_info.start_index).limit(per_page)).unique()
    )
    return PaginatedResult(items=items, page_info=page_info)
