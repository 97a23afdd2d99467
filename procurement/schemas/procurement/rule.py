"""
Procurement rule administration schemas.

Field-level limits live here; whole-chain checks (contiguous order, a
single CREATE step first, unique roles) are done by RuleService so they
surface as the service's ValidationError.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field, model_validator

from procurement.models.base.base_model import MAX_AMOUNT
from procurement.models.base.enums import StepType
from procurement.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)
from procurement.schemas.common.pagination import PaginatedResponse

__all__ = [
    "StepInput",
    "StepRoleAssignment",
    "RuleCreate",
    "RuleUpdate",
    "RuleStepsUpdate",
    "RoleResponse",
    "UnitResponse",
    "StepResponse",
    "RuleResponse",
    "RuleListResponse",
    "AmountGap",
    "CoverageReport",
]


class StepInput(BaseSchema):
    step_order: int = Field(..., ge=1)
    step_type: StepType
    role_id: str


class StepRoleAssignment(BaseSchema):
    step_order: int = Field(..., ge=1)
    role_id: str


class RuleCreate(BaseCreateSchema):
    name: str = Field(..., min_length=3, max_length=100)
    min_amount: int = Field(..., ge=0, le=MAX_AMOUNT)
    max_amount: Optional[int] = Field(default=None, ge=0, le=MAX_AMOUNT)
    steps: List[StepInput] = Field(..., min_length=2)

    @model_validator(mode="after")
    def check_range(self) -> "RuleCreate":
        if self.max_amount is not None and self.max_amount < self.min_amount:
            raise ValueError("max_amount must not be lower than min_amount")
        return self


class RuleUpdate(BaseUpdateSchema):
    """
    Partial update of a rule's name and bounds.

    Sending ``max_amount: null`` explicitly makes the rule unbounded;
    omitting it keeps the current bound.
    """

    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    min_amount: Optional[int] = Field(default=None, ge=0, le=MAX_AMOUNT)
    max_amount: Optional[int] = Field(default=None, ge=0, le=MAX_AMOUNT)


class RuleStepsUpdate(BaseUpdateSchema):
    steps: List[StepRoleAssignment] = Field(..., min_length=1)


class RoleResponse(BaseSchema):
    id: str
    code: str
    name: str


class UnitResponse(BaseSchema):
    id: str
    code: str
    name: str


class StepResponse(BaseSchema):
    id: str
    step_order: int
    step_type: StepType
    role_id: str
    role: Optional[RoleResponse] = None


class RuleResponse(BaseResponseSchema):
    name: str
    min_amount: int
    max_amount: Optional[int] = None
    steps: List[StepResponse] = []


RuleListResponse = PaginatedResponse[RuleResponse]


class AmountGap(BaseSchema):
    low: int
    high: Optional[int] = Field(default=None, description="None means unbounded")


class CoverageReport(BaseSchema):
    complete: bool
    gaps: List[AmountGap]
    rules: List[RuleResponse]
