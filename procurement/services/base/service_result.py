"""
Outcome type returned by every service call.

Services never let application exceptions escape; they return a
``ServiceResult`` holding either the data or a ``ServiceError`` that the
API layer renders with the error's own status code.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

from procurement.core.exceptions import BaseAppException, ErrorCode


class ErrorSeverity(str, Enum):
    """How urgently an operator should look at a failure."""

    WARNING = "WARNING"      # caller mistake or refused action
    ERROR = "ERROR"          # staffing gap or other data problem
    CRITICAL = "CRITICAL"    # rule configuration or infrastructure


@dataclass(frozen=True)
class ServiceError:
    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Dict[str, Any] = field(default_factory=dict)
    status_code: int = 500
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_exception(cls, exc: BaseAppException, severity: ErrorSeverity) -> "ServiceError":
        return cls(
            code=exc.error_code,
            message=exc.message,
            severity=severity,
            details=dict(exc.details),
            status_code=exc.status_code,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "severity": self.severity.value,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class ServiceFailure(BaseAppException):
    """Raised by ``ServiceResult.unwrap`` on a failed result."""

    def __init__(self, error: ServiceError):
        super().__init__(error.message, error.code, error.details, error.status_code)
        self.error = error


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Either ``data`` (success) or ``error`` (failure), never both.

    Truthy on success, so ``if not result:`` reads naturally at call sites.
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Optional[TData] = None, message: Optional[str] = None) -> "ServiceResult[TData]":
        return cls(is_success=True, data=data, message=message)

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResult[TData]":
        return cls(is_success=False, error=error, message=error.message)

    def unwrap(self) -> TData:
        """
        Raises:
            ServiceFailure: If the result is a failure
        """
        if not self.is_success:
            raise ServiceFailure(self.error)
        return self.data

    def __bool__(self) -> bool:
        return self.is_success

    def __repr__(self) -> str:
        if self.is_success:
            return f"ServiceResult(ok: {self.message or type(self.data).__name__})"
        return f"ServiceResult(failed: {self.error.code.value})"


__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceFailure",
    "ServiceResult",
]
