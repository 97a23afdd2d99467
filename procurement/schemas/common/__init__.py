from procurement.schemas.common.base import (
    BaseCreateSchema,
    BaseDBSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)
from procurement.schemas.common.pagination import PaginatedResponse, PaginationMeta

__all__ = [
    "BaseSchema",
    "BaseDBSchema",
    "BaseCreateSchema",
    "BaseUpdateSchema",
    "BaseResponseSchema",
    "PaginatedResponse",
    "PaginationMeta",
]
