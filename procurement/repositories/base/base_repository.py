"""
Base repository with standardized CRUD operations and error handling.

Repositories only flush. Commits belong to the caller's transaction
(see TransactionManager) so that several repository calls can share one
unit of work.
"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar

from sqlalchemy import Select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from procurement.core.exceptions import (
    DatabaseError,
    DuplicateEntryError,
)
from procurement.core.logging import get_logger
from procurement.models.base import BaseModel
from procurement.repositories.base.pagination import PaginatedResult, paginate

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository for one model class.

    Subclasses add the domain queries; this class covers lookup by id,
    pagination and flush-only writes.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """
        Add entity to the session and flush it.

        Raises:
            DuplicateEntryError: If a unique constraint is violated
            DatabaseError: On any other database failure
        """
        try:
            self.db.add(entity)
            self.db.flush()
            logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
            return entity
        except IntegrityError as e:
            raise DuplicateEntryError(
                f"{self.model.__name__} already exists",
                table=self.model.__tablename__,
            ) from e
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Create failed: {e}",
                operation="create",
                table=self.model.__tablename__,
            ) from e

    # ==================== Read Operations ====================

    def find_by_id(self, id: Any) -> Optional[ModelType]:
        """Find entity by primary key, or None."""
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Find by ID failed: {e}",
                operation="select",
                table=self.model.__tablename__,
            ) from e

    # ==================== Update / Delete ====================

    def update(self, entity: ModelType, data: Dict[str, Any]) -> ModelType:
        """
        Apply ``data`` to ``entity`` and flush.

        Keys that are not attributes of the model are ignored.
        """
        for key, value in data.items():
            if hasattr(entity, key):
                setattr(entity, key, value)

        try:
            self.db.flush()
        except IntegrityError as e:
            raise DuplicateEntryError(
                f"{self.model.__name__} conflicts with an existing row",
                table=self.model.__tablename__,
            ) from e

        logger.debug(f"Updated {self.model.__name__} with id: {entity.id}")
        return entity

    def delete(self, entity: ModelType) -> None:
        try:
            self.db.delete(entity)
            self.db.flush()
        except IntegrityError as e:
            raise DatabaseError(
                f"{self.model.__name__} is still referenced",
                operation="delete",
                table=self.model.__tablename__,
            ) from e
        logger.debug(f"Deleted {self.model.__name__} with id: {entity.id}")

    # ==================== Pagination ====================

    def paginate_query(self, stmt: Select, page: int, per_page: int) -> PaginatedResult[ModelType]:
        try:
            return paginate(self.db, stmt, page, per_page)
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Pagination failed: {e}",
                operation="select",
                table=self.model.__tablename__,
            ) from e
