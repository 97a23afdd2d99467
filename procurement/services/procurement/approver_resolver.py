"""
Approver resolution.

Turns the abstract role of an approval step into the one user who must
act on it. Central-scope roles (directors, finance division, general
affair) are staffed only at the central unit; every other role is looked
up in the letter's home unit.
"""

from typing import FrozenSet, Iterable, Optional

from sqlalchemy.orm import Session

from procurement.config.settings import Settings
from procurement.core.exceptions import (
    AmbiguousApproverError,
    ApproverNotFoundError,
    ConfigurationError,
)
from procurement.core.logging import get_logger
from procurement.models.organization import Role, Unit, User
from procurement.repositories.organization import (
    RoleRepository,
    UnitRepository,
    UserRepository,
)

logger = get_logger(__name__)


class ApproverResolver:
    """
    Resolve ``(role, home unit)`` to exactly one active user.

    Args:
        db: Database session
        central_unit_code: Code of the unit that staffs central-scope roles
        central_role_ids: Ids of the roles resolved at the central unit
    """

    def __init__(
        self,
        db: Session,
        central_unit_code: str,
        central_role_ids: Iterable[str],
    ):
        self.db = db
        self.central_unit_code = central_unit_code
        self.central_role_ids: FrozenSet[str] = frozenset(central_role_ids)
        self.users = UserRepository(db)
        self.units = UnitRepository(db)
        self.roles = RoleRepository(db)

    @classmethod
    def from_settings(cls, db: Session, settings: Settings) -> "ApproverResolver":
        """
        Build a resolver from configured role codes.

        Codes with no matching role are logged and skipped; a role that
        does not exist cannot appear in any rule either.
        """
        codes = settings.get_central_scope_role_codes()
        ids_by_code = RoleRepository(db).ids_for_codes(codes)

        missing = sorted(set(codes) - set(ids_by_code))
        if missing:
            logger.warning(
                "Central-scope role codes not found",
                extra={"role_codes": missing},
            )

        return cls(
            db,
            central_unit_code=settings.CENTRAL_UNIT_CODE,
            central_role_ids=ids_by_code.values(),
        )

    def is_central(self, role_id: str) -> bool:
        return role_id in self.central_role_ids

    def resolve(self, role_id: str, home_unit_id: str) -> User:
        """
        The single active user holding ``role_id`` in the unit that
        staffs it.

        The central unit must exist whatever the role.

        Raises:
            ConfigurationError: The central unit does not exist
            ApproverNotFoundError: Nobody active holds the role there
            AmbiguousApproverError: More than one active user holds it
        """
        central_unit = self._central_unit()
        if self.is_central(role_id):
            unit = central_unit
        else:
            unit = self.units.find_by_id(home_unit_id)

        unit_id = unit.id if unit is not None else home_unit_id
        candidates = self.users.find_active_by_role_and_unit(role_id, unit_id)

        if not candidates:
            role_label = self._role_label(role_id)
            unit_label = unit.code if unit is not None else home_unit_id
            logger.error(
                "No approver staffed for role",
                extra={"role": role_label, "unit": unit_label},
            )
            raise ApproverNotFoundError(role_label, unit_label)

        if len(candidates) > 1:
            role_label = self._role_label(role_id)
            unit_label = unit.code if unit is not None else home_unit_id
            raise AmbiguousApproverError(
                role_label,
                unit_label,
                [user.id for user in candidates],
            )

        return candidates[0]

    def _central_unit(self) -> Unit:
        unit = self.units.find_by_code(self.central_unit_code)
        if unit is None:
            raise ConfigurationError(
                f"Central unit '{self.central_unit_code}' does not exist",
                config_key="CENTRAL_UNIT_CODE",
                config_value=self.central_unit_code,
            )
        return unit

    def _role_label(self, role_id: str) -> str:
        role: Optional[Role] = self.roles.find_by_id(role_id)
        return role.code if role is not None else role_id
