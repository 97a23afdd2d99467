"""
Role and unit repositories.
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from procurement.models.organization import Role, Unit
from procurement.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    def __init__(self, db: Session):
        super().__init__(Role, db)

    def find_by_code(self, code: str) -> Optional[Role]:
        return self.db.scalar(select(Role).where(Role.code == code))

    def ids_for_codes(self, codes: Iterable[str]) -> Dict[str, str]:
        """Map each known role code to its id; unknown codes are omitted."""
        codes = list(codes)
        if not codes:
            return {}
        rows = self.db.execute(select(Role.code, Role.id).where(Role.code.in_(codes)))
        return {code: role_id for code, role_id in rows}

    def find_by_ids(self, ids: Iterable[str]) -> List[Role]:
        ids = list(ids)
        if not ids:
            return []
        return list(self.db.scalars(select(Role).where(Role.id.in_(ids))))

    def list_all(self) -> List[Role]:
        return list(self.db.scalars(select(Role).order_by(Role.name)))


class UnitRepository(BaseRepository[Unit]):
    def __init__(self, db: Session):
        super().__init__(Unit, db)

    def find_by_code(self, code: str) -> Optional[Unit]:
        return self.db.scalar(select(Unit).where(Unit.code == code))

    def list_all(self) -> List[Unit]:
        return list(self.db.scalars(select(Unit).order_by(Unit.code)))
