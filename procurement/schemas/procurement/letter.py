"""
Procurement letter request and response schemas.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import AliasChoices, Field

from procurement.models.base.base_model import MAX_AMOUNT
from procurement.models.base.enums import Decision, LetterStatus, LogAction
from procurement.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)
from procurement.schemas.common.pagination import PaginatedResponse

__all__ = [
    "LetterCreate",
    "LetterResubmit",
    "DecisionRequest",
    "UserSummary",
    "UnitSummary",
    "LetterResponse",
    "LogEntryResponse",
    "LetterProgressResponse",
    "LetterListResponse",
]


class LetterCreate(BaseCreateSchema):
    """
    Request body for a new procurement letter.

    ``amount`` positivity is enforced by the routing engine so direct
    callers and HTTP callers get the same error.
    """

    letter_number: str = Field(..., min_length=1, max_length=100)
    letter_about: str = Field(..., min_length=1, max_length=255)
    amount: int = Field(
        ...,
        le=MAX_AMOUNT,
        validation_alias=AliasChoices("amount", "nominal"),
        description="Letter amount in whole currency units",
    )
    incoming_letter_date: date
    letter_file: Optional[str] = Field(default=None, max_length=500)
    unit_id: Optional[str] = Field(
        default=None,
        description="Home unit of the letter; defaults to the creator's unit",
    )


class LetterResubmit(BaseUpdateSchema):
    """Revised letter fields; omitted fields keep their value."""

    letter_number: Optional[str] = Field(default=None, min_length=1, max_length=100)
    letter_about: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[int] = Field(
        default=None,
        le=MAX_AMOUNT,
        validation_alias=AliasChoices("amount", "nominal"),
    )
    incoming_letter_date: Optional[date] = None
    letter_file: Optional[str] = Field(default=None, max_length=500)
    comment: Optional[str] = Field(default=None, max_length=1000)


class DecisionRequest(BaseSchema):
    decision: Decision
    comment: Optional[str] = Field(default=None, max_length=1000)
    expected_version: Optional[int] = Field(
        default=None,
        ge=1,
        description="Reject the decision if the letter changed since this version",
    )


class UserSummary(BaseSchema):
    id: str
    name: str


class UnitSummary(BaseSchema):
    id: str
    code: str
    name: str


class LetterResponse(BaseResponseSchema):
    letter_number: str
    letter_about: str
    amount: int
    incoming_letter_date: date
    letter_file: Optional[str] = None
    status: LetterStatus
    unit_id: str
    created_by_id: str
    current_approver_id: Optional[str] = None
    version: int
    unit: Optional[UnitSummary] = None
    created_by: Optional[UserSummary] = None
    current_approver: Optional[UserSummary] = None


class LogEntryResponse(BaseSchema):
    id: int
    letter_id: str
    actor_id: str
    actor: Optional[UserSummary] = None
    action: LogAction
    comment: Optional[str] = None
    from_status: Optional[LetterStatus] = None
    to_status: LetterStatus
    created_at: datetime


class LetterProgressResponse(BaseSchema):
    letter: LetterResponse
    history: List[LogEntryResponse]


LetterListResponse = PaginatedResponse[LetterResponse]
