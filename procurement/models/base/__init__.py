"""
Base model package.

Declarative base, abstract model, column mixins and shared enums.
"""

from procurement.models.base.base_model import MAX_AMOUNT, Base, BaseModel
from procurement.models.base.enums import Decision, LetterStatus, LogAction, StepType
from procurement.models.base.mixins import CreatedAtMixin, TimestampMixin, utcnow

__all__ = [
    "Base",
    "BaseModel",
    "MAX_AMOUNT",
    "TimestampMixin",
    "CreatedAtMixin",
    "utcnow",
    "LetterStatus",
    "StepType",
    "LogAction",
    "Decision",
]
