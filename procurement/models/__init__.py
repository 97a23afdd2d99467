"""
SQLAlchemy models.

Importing this package registers every table on ``Base.metadata``.
"""

from procurement.models.base import Base, BaseModel
from procurement.models.organization import Role, Unit, User
from procurement.models.procurement import (
    ProcurementLetter,
    ProcurementLog,
    ProcurementRule,
    ProcurementStep,
)

__all__ = [
    "Base",
    "BaseModel",
    "Role",
    "Unit",
    "User",
    "ProcurementRule",
    "ProcurementStep",
    "ProcurementLetter",
    "ProcurementLog",
]
