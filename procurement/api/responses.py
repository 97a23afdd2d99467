"""
Rendering of ServiceResult values as HTTP responses.

Successful results become ``{"data": ..., "message": ...}``; failures
become ``{"error": {...}}`` with the status code the service assigned.
"""

from typing import Any, Callable, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from procurement.schemas.common.pagination import PaginationMeta
from procurement.services.base import ServiceError, ServiceResult


def error_response(error: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"error": error.to_dict()})


def render(
    result: ServiceResult,
    serializer: Optional[Callable[[Any], Any]] = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """
    Serialize a service result.

    Args:
        result: Outcome of a service call
        serializer: Turns ``result.data`` into a schema or plain value
        status_code: Status for the success case
    """
    if not result.is_success:
        return error_response(result.error)

    data = serializer(result.data) if serializer is not None else result.data
    return JSONResponse(
        status_code=status_code,
        content={"data": jsonable_encoder(data), "message": result.message},
    )


def page_of(schema) -> Callable[[Any], dict]:
    """Serializer for a PaginatedResult whose items validate as ``schema``."""

    def serialize(page) -> dict:
        return {
            "items": [schema.model_validate(item) for item in page.items],
            "pagination": PaginationMeta.from_page_info(page.page_info),
        }

    return serialize
