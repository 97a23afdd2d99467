"""
Role model.

A role is what approval steps point at; users hold exactly one.
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurement.models.base.base_model import BaseModel
from procurement.models.base.mixins import TimestampMixin

if TYPE_CHECKING:
    from procurement.models.organization.user import User

__all__ = ["Role"]


class Role(BaseModel, TimestampMixin):
    """
    Organisational role.

    ``code`` is the stable identifier referenced from configuration;
    ``name`` is the display label and never used for comparisons.
    """

    __table_args__ = ({"comment": "Organisational roles"},)

    code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        comment="Stable role code, e.g. DIREKTUR_UTAMA"
    )

    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        comment="Display name"
    )

    users: Mapped[List["User"]] = relationship(
        "User",
        back_populates="role",
    )

    def __repr__(self) -> str:
        return f"<Role(code={self.code!r}, name={self.name!r})>"
