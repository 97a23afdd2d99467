"""
Schema bases shared by the letter, rule and organization payloads.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "BaseSchema",
    "BaseDBSchema",
    "BaseCreateSchema",
    "BaseUpdateSchema",
    "BaseResponseSchema",
]


class BaseSchema(BaseModel):
    """
    Common configuration: ORM objects validate directly, aliases and field
    names are both accepted, and enums stay enum members.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=False,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class BaseDBSchema(BaseSchema):
    """Identity and audit timestamps of a stored row."""

    id: str = Field(..., description="Row id (UUID string)")
    created_at: datetime
    updated_at: datetime


class BaseCreateSchema(BaseSchema):
    pass


class BaseUpdateSchema(BaseSchema):
    """
    Partial update: every field is optional and an omitted field keeps the
    stored value.
    """

    def changes(self, nullable: Iterable[str] = ()) -> Dict[str, Any]:
        """
        Fields the caller sent. An explicit ``null`` counts as a change only
        for the names in ``nullable``; elsewhere it means "leave as is".
        """
        clearable = set(nullable)
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None or name in clearable
        }


class BaseResponseSchema(BaseDBSchema):
    pass
