from procurement.models.organization.role import Role
from procurement.models.organization.unit import Unit
from procurement.models.organization.user import User

__all__ = ["Role", "Unit", "User"]
