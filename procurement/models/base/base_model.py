"""
Base model configuration for SQLAlchemy ORM.

Provides the declarative base and the abstract model every table in the
procurement service derives from.
"""

import re
from uuid import uuid4

from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(DeclarativeBase):
    """Declarative base shared by all models."""


# Largest value a BigInteger amount column holds
MAX_AMOUNT = 2**63 - 1


class BaseModel(Base):
    """
    Abstract base model with a UUID string primary key and a
    derived snake_case plural table name.
    """

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
        comment="Primary key (UUID)"
    )

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Generate table name from class name."""
        name = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', cls.__name__)
        return re.sub('([a-z0-9])([A-Z])', r'\1_\2', name).lower() + 's'

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={getattr(self, 'id', None)})>"
