from procurement.repositories.organization.role_repository import RoleRepository, UnitRepository
from procurement.repositories.organization.user_repository import UserRepository

__all__ = ["RoleRepository", "UnitRepository", "UserRepository"]
