from procurement.repositories.base.base_repository import BaseRepository, ModelType
from procurement.repositories.base.pagination import PageInfo, PaginatedResult, paginate

__all__ = [
    "BaseRepository",
    "ModelType",
    "PageInfo",
    "PaginatedResult",
    "paginate",
]
