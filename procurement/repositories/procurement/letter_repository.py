"""
Procurement letter and log repositories.
"""

from typing import List, Optional

from sqlalchemy import exists, or_, select
from sqlalchemy.orm import Session, joinedload

from procurement.models.base.enums import LetterStatus
from procurement.models.procurement import ProcurementLetter, ProcurementLog
from procurement.repositories.base import BaseRepository, PaginatedResult


class ProcurementLetterRepository(BaseRepository[ProcurementLetter]):
    """Queries over procurement letters."""

    def __init__(self, db: Session):
        super().__init__(ProcurementLetter, db)

    def _with_people(self):
        return select(ProcurementLetter).options(
            joinedload(ProcurementLetter.created_by),
            joinedload(ProcurementLetter.current_approver),
            joinedload(ProcurementLetter.unit),
        )

    def find_for_update(self, letter_id: str) -> Optional[ProcurementLetter]:
        """
        Load the letter with a row lock, refreshing any copy already in
        the session so the caller sees the committed state.
        """
        stmt = (
            select(ProcurementLetter)
            .where(ProcurementLetter.id == letter_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.scalar(stmt)

    def find_detailed(self, letter_id: str) -> Optional[ProcurementLetter]:
        stmt = self._with_people().where(ProcurementLetter.id == letter_id)
        return self.db.scalars(stmt).unique().one_or_none()

    def dashboard(
        self,
        user_id: str,
        page: int,
        limit: int,
        search: Optional[str] = None,
    ) -> PaginatedResult[ProcurementLetter]:
        """
        Letters waiting on ``user_id``: those where the user is the current
        approver, and the user's own letters sent back for revision.
        """
        stmt = self._with_people().where(
            or_(
                ProcurementLetter.current_approver_id == user_id,
                (ProcurementLetter.created_by_id == user_id)
                & (ProcurementLetter.status == LetterStatus.NEEDS_REVISION),
            )
        )
        stmt = self._apply_search(stmt, search)
        stmt = stmt.order_by(ProcurementLetter.created_at.desc(), ProcurementLetter.id)
        return self.paginate_query(stmt, page, limit)

    def history(
        self,
        user_id: str,
        page: int,
        limit: int,
        search: Optional[str] = None,
    ) -> PaginatedResult[ProcurementLetter]:
        """Letters the user has acted on at least once."""
        acted = exists().where(
            ProcurementLog.letter_id == ProcurementLetter.id,
            ProcurementLog.actor_id == user_id,
        )
        stmt = self._with_people().where(acted)
        stmt = self._apply_search(stmt, search)
        stmt = stmt.order_by(ProcurementLetter.updated_at.desc(), ProcurementLetter.id)
        return self.paginate_query(stmt, page, limit)

    @staticmethod
    def _apply_search(stmt, search: Optional[str]):
        if not search:
            return stmt
        term = search.strip()
        conditions = [
            ProcurementLetter.letter_number.ilike(f"%{term}%"),
            ProcurementLetter.letter_about.ilike(f"%{term}%"),
        ]
        if term.isdigit():
            conditions.append(ProcurementLetter.amount == int(term))
        return stmt.where(or_(*conditions))


class ProcurementLogRepository(BaseRepository[ProcurementLog]):
    """Append-only access to the letter audit trail."""

    def __init__(self, db: Session):
        super().__init__(ProcurementLog, db)

    def append(self, entry: ProcurementLog) -> ProcurementLog:
        return self.create(entry)

    def for_letter(self, letter_id: str) -> List[ProcurementLog]:
        """Entries for a letter, oldest first."""
        stmt = (
            select(ProcurementLog)
            .options(joinedload(ProcurementLog.actor))
            .where(ProcurementLog.letter_id == letter_id)
            .order_by(ProcurementLog.created_at, ProcurementLog.id)
        )
        return list(self.db.scalars(stmt))
