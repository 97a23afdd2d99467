"""
User model.

Only the attributes approval routing needs: identity, role, unit and
whether the account may still act.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurement.models.base.base_model import BaseModel
from procurement.models.base.mixins import TimestampMixin

if TYPE_CHECKING:
    from procurement.models.organization.role import Role
    from procurement.models.organization.unit import Unit

__all__ = ["User"]


class User(BaseModel, TimestampMixin):
    """A person who creates or decides on procurement letters."""

    __table_args__ = (
        Index("ix_users_role_unit", "role_id", "unit_id"),
        {"comment": "Workflow participants"},
    )

    name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )

    role_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
    )

    unit_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("units.id", ondelete="RESTRICT"),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Inactive users are never resolved as approvers"
    )

    role: Mapped["Role"] = relationship("Role", back_populates="users")
    unit: Mapped["Unit"] = relationship("Unit", back_populates="users")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r})>"
