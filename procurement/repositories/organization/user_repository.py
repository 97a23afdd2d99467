"""
User repository.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from procurement.models.organization import User
from procurement.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(User, db)

    def find_active_by_role_and_unit(self, role_id: str, unit_id: str) -> List[User]:
        """
        Active users holding ``role_id`` in ``unit_id``.

        Returned in id order so callers see a stable list when more than
        one user matches.
        """
        stmt = (
            select(User)
            .where(
                User.role_id == role_id,
                User.unit_id == unit_id,
                User.is_active.is_(True),
            )
            .order_by(User.id)
        )
        return list(self.db.scalars(stmt))
