"""
Service layer foundations: base service, results, transactions.
"""

from procurement.services.base.base_service import BaseService
from procurement.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceFailure,
    ServiceResult,
)
from procurement.services.base.transaction_manager import (
    TransactionContext,
    TransactionManager,
)

__all__ = [
    "BaseService",
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceFailure",
    "ServiceResult",
    "TransactionContext",
    "TransactionManager",
]
