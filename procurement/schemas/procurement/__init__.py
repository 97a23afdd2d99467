from procurement.schemas.procurement.letter import (
    DecisionRequest,
    LetterCreate,
    LetterListResponse,
    LetterProgressResponse,
    LetterResponse,
    LetterResubmit,
    LogEntryResponse,
    UnitSummary,
    UserSummary,
)
from procurement.schemas.procurement.rule import (
    AmountGap,
    CoverageReport,
    RoleResponse,
    RuleCreate,
    RuleListResponse,
    RuleResponse,
    RuleStepsUpdate,
    RuleUpdate,
    StepInput,
    StepResponse,
    StepRoleAssignment,
    UnitResponse,
)

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
