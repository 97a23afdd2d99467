"""
Procurement rule repository.

Selects the amount tier that governs a letter and answers the range
questions rule administration needs (overlaps and coverage gaps).
"""

from typing import List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from procurement.core.exceptions import (
    OverlappingRulesError,
    RuleNotConfiguredError,
    RuleNotFoundError,
)
from procurement.core.logging import get_logger
from procurement.models.procurement import ProcurementRule, ProcurementStep
from procurement.repositories.base import BaseRepository, PaginatedResult

logger = get_logger(__name__)

# (low, high) inclusive; high None means unbounded
AmountRange = Tuple[int, Optional[int]]


class ProcurementRuleRepository(BaseRepository[ProcurementRule]):
    """Data access for procurement rules and their steps."""

    def __init__(self, db: Session):
        super().__init__(ProcurementRule, db)

    def _with_steps(self):
        return select(ProcurementRule).options(
            selectinload(ProcurementRule.steps).selectinload(ProcurementStep.role)
        )

    def find_rule_for_amount(self, amount: int) -> ProcurementRule:
        """
        The single rule whose range contains ``amount``.

        Raises:
            RuleNotConfiguredError: No rule covers the amount
            OverlappingRulesError: More than one rule covers the amount
        """
        stmt = (
            self._with_steps()
            .where(
                ProcurementRule.min_amount <= amount,
                or_(
                    ProcurementRule.max_amount.is_(None),
                    ProcurementRule.max_amount >= amount,
                ),
            )
            .order_by(ProcurementRule.min_amount)
        )
        rules = list(self.db.scalars(stmt))

        if not rules:
            logger.error("No procurement rule covers amount", extra={"amount": amount})
            raise RuleNotConfiguredError(amount)
        if len(rules) > 1:
            rule_ids = [rule.id for rule in rules]
            logger.error(
                "Overlapping procurement rules",
                extra={"amount": amount, "rule_ids": rule_ids},
            )
            raise OverlappingRulesError(amount, rule_ids)

        return rules[0]

    def get_with_steps(self, rule_id: str) -> ProcurementRule:
        """
        Raises:
            RuleNotFoundError: If no rule has this id
        """
        rule = self.db.scalar(self._with_steps().where(ProcurementRule.id == rule_id))
        if rule is None:
            raise RuleNotFoundError(rule_id)
        return rule

    def find_by_name(self, name: str) -> Optional[ProcurementRule]:
        return self.db.scalar(select(ProcurementRule).where(ProcurementRule.name == name))

    def list_all(self) -> List[ProcurementRule]:
        stmt = self._with_steps().order_by(ProcurementRule.min_amount)
        return list(self.db.scalars(stmt))

    def search(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
    ) -> PaginatedResult[ProcurementRule]:
        """Rules ordered by lower bound, optionally filtered by name."""
        stmt = self._with_steps()
        if search:
            stmt = stmt.where(ProcurementRule.name.ilike(f"%{search}%"))
        stmt = stmt.order_by(ProcurementRule.min_amount, ProcurementRule.id)
        return self.paginate_query(stmt, page, limit)

    def find_overlapping(
        self,
        min_amount: int,
        max_amount: Optional[int],
        exclude_id: Optional[str] = None,
    ) -> List[ProcurementRule]:
        """
        Rules whose range intersects ``[min_amount, max_amount]``.

        Two inclusive ranges intersect when each starts no later than the
        other ends; a NULL upper bound never ends.
        """
        conditions = [
            or_(
                ProcurementRule.max_amount.is_(None),
                ProcurementRule.max_amount >= min_amount,
            )
        ]
        if max_amount is not None:
            conditions.append(ProcurementRule.min_amount <= max_amount)
        if exclude_id is not None:
            conditions.append(ProcurementRule.id != exclude_id)

        stmt = select(ProcurementRule).where(*conditions).order_by(ProcurementRule.min_amount)
        return list(self.db.scalars(stmt))

    def coverage_gaps(self) -> List[AmountRange]:
        """
        Uncovered integer ranges of ``[0, +inf)``.

        An empty list means every non-negative amount selects some rule.
        """
        stmt = select(ProcurementRule.min_amount, ProcurementRule.max_amount).order_by(
            ProcurementRule.min_amount
        )

        gaps: List[AmountRange] = []
        next_uncovered: Optional[int] = 0

        for min_amount, max_amount in self.db.execute(stmt):
            if min_amount > next_uncovered:
                gaps.append((next_uncovered, min_amount - 1))
            if max_amount is None:
                next_uncovered = None
                break
            next_uncovered = max(next_uncovered, max_amount + 1)

        if next_uncovered is not None:
            gaps.append((next_uncovered, None))

        return gaps
