"""
Procurement letter and audit log models.
"""

from datetime import date
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    BigInteger,
    Date,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurement.models.base.base_model import BaseModel
from procurement.models.base.enums import LetterStatus, LogAction
from procurement.models.base.mixins import CreatedAtMixin, TimestampMixin

if TYPE_CHECKING:
    from procurement.models.organization.unit import Unit
    from procurement.models.organization.user import User

__all__ = ["ProcurementLetter", "ProcurementLog"]


class ProcurementLetter(BaseModel, TimestampMixin):
    """
    A procurement request moving through its approval chain.

    ``current_approver_id`` names whoever must act next: the pending
    approver, or the creator while the letter needs revision. It is NULL
    once the letter is approved or rejected.

    ``version`` is maintained by the mapper and bumped on every UPDATE;
    a concurrent writer holding a stale copy fails with StaleDataError.
    """

    __table_args__ = (
        Index("ix_procurement_letters_current_approver", "current_approver_id"),
        Index("ix_procurement_letters_created_by_status", "created_by_id", "status"),
        {"comment": "Procurement letters under approval"},
    )

    letter_number: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    letter_about: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    amount: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Letter amount in whole currency units"
    )

    incoming_letter_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    letter_file: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Reference to the uploaded letter document"
    )

    status: Mapped[LetterStatus] = mapped_column(
        Enum(LetterStatus, name="letter_status", native_enum=False, length=30),
        nullable=False,
        index=True,
    )

    unit_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("units.id", ondelete="RESTRICT"),
        nullable=False,
    )

    created_by_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    current_approver_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    unit: Mapped["Unit"] = relationship("Unit")
    created_by: Mapped["User"] = relationship("User", foreign_keys=[created_by_id])
    current_approver: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[current_approver_id],
    )
    logs: Mapped[List["ProcurementLog"]] = relationship(
        "ProcurementLog",
        back_populates="letter",
        order_by=lambda: [ProcurementLog.created_at, ProcurementLog.id],
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"<ProcurementLetter(id={self.id}, number={self.letter_number!r}, "
            f"status={self.status.value if self.status else None})>"
        )


class ProcurementLog(BaseModel, CreatedAtMixin):
    """
    Append-only audit entry, one per letter transition.

    The integer key breaks ties between entries written in the same
    timestamp tick.
    """

    __table_args__ = (
        Index("ix_procurement_logs_letter_order", "letter_id", "created_at", "id"),
        Index("ix_procurement_logs_actor", "actor_id"),
        {"comment": "Procurement letter audit trail"},
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    letter_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("procurement_letters.id", ondelete="CASCADE"),
        nullable=False,
    )

    actor_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    action: Mapped[LogAction] = mapped_column(
        Enum(LogAction, name="log_action", native_enum=False, length=30),
        nullable=False,
    )

    comment: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    from_status: Mapped[Optional[LetterStatus]] = mapped_column(
        Enum(LetterStatus, name="letter_status", native_enum=False, length=30),
        nullable=True,
    )

    to_status: Mapped[LetterStatus] = mapped_column(
        Enum(LetterStatus, name="letter_status", native_enum=False, length=30),
        nullable=False,
    )

    letter: Mapped["ProcurementLetter"] = relationship("ProcurementLetter", back_populates="logs")
    actor: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        return f"<ProcurementLog(letter_id={self.letter_id}, action={self.action})>"
