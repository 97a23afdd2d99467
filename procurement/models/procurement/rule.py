"""
Procurement rule models.

A rule covers a closed amount range and owns an ordered chain of steps;
step 1 is always the CREATE step, the remaining steps are reviewers and
the final approver.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurement.models.base.base_model import BaseModel
from procurement.models.base.enums import StepType
from procurement.models.base.mixins import TimestampMixin

if TYPE_CHECKING:
    from procurement.models.organization.role import Role

__all__ = ["ProcurementRule", "ProcurementStep"]


class ProcurementRule(BaseModel, TimestampMixin):
    """
    Amount tier with its approval chain.

    ``max_amount`` of None means the tier is unbounded above.
    """

    __table_args__ = (
        CheckConstraint("min_amount >= 0", name="ck_procurement_rules_min_amount"),
        CheckConstraint(
            "max_amount IS NULL OR max_amount >= min_amount",
            name="ck_procurement_rules_range",
        ),
        {"comment": "Amount-tiered approval rules"},
    )

    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
    )

    min_amount: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Inclusive lower bound"
    )

    max_amount: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
        comment="Inclusive upper bound; NULL means unbounded"
    )

    steps: Mapped[List["ProcurementStep"]] = relationship(
        "ProcurementStep",
        back_populates="rule",
        order_by="ProcurementStep.step_order",
        cascade="all, delete-orphan",
    )

    def covers(self, amount: int) -> bool:
        """Whether ``amount`` falls inside this rule's range."""
        if amount < self.min_amount:
            return False
        return self.max_amount is None or amount <= self.max_amount

    def __repr__(self) -> str:
        return (
            f"<ProcurementRule(name={self.name!r}, "
            f"range=[{self.min_amount}, {self.max_amount}])>"
        )


class ProcurementStep(BaseModel, TimestampMixin):
    """One position in a rule's approval chain."""

    __table_args__ = (
        UniqueConstraint("rule_id", "step_order", name="uq_procurement_steps_rule_order"),
        UniqueConstraint("rule_id", "role_id", name="uq_procurement_steps_rule_role"),
        CheckConstraint("step_order >= 1", name="ck_procurement_steps_order"),
        {"comment": "Ordered approval steps of a rule"},
    )

    rule_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("procurement_rules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    step_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    step_type: Mapped[StepType] = mapped_column(
        Enum(StepType, name="step_type", native_enum=False, length=20),
        nullable=False,
    )

    role_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("roles.id", ondelete="RESTRICT"),
        nullable=False,
    )

    rule: Mapped["ProcurementRule"] = relationship("ProcurementRule", back_populates="steps")
    role: Mapped["Role"] = relationship("Role")

    def __repr__(self) -> str:
        return (
            f"<ProcurementStep(order={self.step_order}, "
            f"type={self.step_type.value if self.step_type else None})>"
        )
