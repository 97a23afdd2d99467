"""
Business unit model.
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurement.models.base.base_model import BaseModel
from procurement.models.base.mixins import TimestampMixin

if TYPE_CHECKING:
    from procurement.models.organization.user import User

__all__ = ["Unit"]


class Unit(BaseModel, TimestampMixin):
    """Head office or business unit a user belongs to."""

    __table_args__ = ({"comment": "Organisational units"},)

    code: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        comment="Unit code, e.g. HO"
    )

    name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        comment="Unit display name"
    )

    users: Mapped[List["User"]] = relationship(
        "User",
        back_populates="unit",
    )

    def __repr__(self) -> str:
        return f"<Unit(code={self.code!r})>"
