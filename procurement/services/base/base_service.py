"""
Base service class providing common functionality for all services.
"""

from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from procurement.core.exceptions import (
    ApproverNotFoundError,
    BaseAppException,
    ConfigurationError,
    ErrorCode,
)
from procurement.core.logging import get_logger
from procurement.services.base.service_result import (
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)
from procurement.services.base.transaction_manager import TransactionManager


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger and db session
    - A TransactionManager bound to the session
    - Consistent conversion of exceptions into ServiceResult failures
    """

    def __init__(self, db_session: Session):
        """
        Initialize base service.

        Args:
            db_session: SQLAlchemy database session
        """
        self.db: Session = db_session
        self.transactions = TransactionManager(db_session)
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Exception & Error Handling
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Convert exception to a ServiceResult failure with logging.

        Application exceptions keep their own code, message, details and
        status. Anything else is reported as an internal or database error
        without leaking its message to the caller.

        Args:
            exception: The caught exception
            operation: Description of the operation that failed
            entity_ref: Reference to the entity involved (ID, name, etc.)
            additional_context: Extra context for logging
        """
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }
        if additional_context:
            context.update(additional_context)

        if isinstance(exception, BaseAppException):
            severity = self._severity_for(exception)
            if severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
                self._logger.error(f"{operation} failed: {exception}", extra=context)
            else:
                self._logger.warning(f"{operation} refused: {exception}", extra=context)

            return ServiceResult.failure(ServiceError.from_exception(exception, severity))

        if isinstance(exception, SQLAlchemyError):
            self.db.rollback()
            code = ErrorCode.DATABASE_ERROR
        else:
            code = ErrorCode.INTERNAL_ERROR

        self._logger.error(
            f"Error during {operation}: {exception}",
            exc_info=True,
            extra=context,
        )
        return ServiceResult.failure(
            ServiceError(
                code=code,
                message=f"Failed to {operation}",
                severity=ErrorSeverity.CRITICAL,
                details={"entity_ref": context["entity_ref"]},
                status_code=500,
            )
        )

    @staticmethod
    def _severity_for(exception: BaseAppException) -> ErrorSeverity:
        # Configuration problems and staffing gaps need an operator, not a retry
        if isinstance(exception, ConfigurationError):
            return ErrorSeverity.CRITICAL
        if isinstance(exception, ApproverNotFoundError):
            return ErrorSeverity.ERROR
        if exception.status_code >= 500:
            return ErrorSeverity.ERROR
        return ErrorSeverity.WARNING

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _log_operation(
        self,
        operation: str,
        entity_ref: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = {"entity_ref": str(entity_ref) if entity_ref else None}
        if extra:
            context.update(extra)
        self._logger.info(f"Operation: {operation}", extra=context)
