"""
Custom Exceptions for the Procurement Approval Application

This module defines custom exception classes used throughout the application
for better error handling and debugging.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    OPERATION_FAILED = "OPERATION_FAILED"
    CONFLICT = "CONFLICT"

    # Authorization
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

    # Workflow specific errors
    USER_NOT_FOUND = "USER_NOT_FOUND"
    LETTER_NOT_FOUND = "LETTER_NOT_FOUND"
    RULE_NOT_FOUND = "RULE_NOT_FOUND"
    APPROVER_NOT_FOUND = "APPROVER_NOT_FOUND"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    RULE_NOT_CONFIGURED = "RULE_NOT_CONFIGURED"
    OVERLAPPING_RULES = "OVERLAPPING_RULES"
    AMBIGUOUS_APPROVER = "AMBIGUOUS_APPROVER"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# General Application Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when data validation fails"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        status_code: int = 422
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, error_code, details, status_code)


class ConflictError(BaseAppException):
    """Exception raised when a request conflicts with existing data"""

    def __init__(
        self,
        message: str = "Conflict with existing data",
        details: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.CONFLICT
    ):
        super().__init__(message, error_code, details, 409)


class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


# ========================================
# Resource Not Found Exceptions
# ========================================

class UserNotFoundError(ResourceNotFoundError):
    """Exception raised when a user is not found"""

    def __init__(
        self,
        user_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        super().__init__("User", user_id, message)
        self.error_code = ErrorCode.USER_NOT_FOUND


class LetterNotFoundError(ResourceNotFoundError):
    """Exception raised when a procurement letter is not found"""

    def __init__(
        self,
        letter_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        super().__init__("Procurement letter", letter_id, message)
        self.error_code = ErrorCode.LETTER_NOT_FOUND


class RuleNotFoundError(ResourceNotFoundError):
    """Exception raised when a procurement rule is not found by ID"""

    def __init__(
        self,
        rule_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        super().__init__("Procurement rule", rule_id, message)
        self.error_code = ErrorCode.RULE_NOT_FOUND


class ApproverNotFoundError(ResourceNotFoundError):
    """
    Exception raised when no active user holds the role required by the
    next approval step in the resolved unit.

    This is a staffing gap, not a client mistake; callers should not retry.
    """

    def __init__(
        self,
        role: Optional[str] = None,
        unit: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"Approver with role '{role}' not found in unit '{unit}'"
        super().__init__("Approver", None, message)
        self.error_code = ErrorCode.APPROVER_NOT_FOUND
        self.details.update({"role": role, "unit": unit})


# ========================================
# Authorization Exceptions
# ========================================

class AuthorizationError(BaseAppException):
    """Exception raised when the actor may not perform the requested action"""

    def __init__(
        self,
        message: str = "Access denied",
        details: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.AUTHORIZATION_FAILED
    ):
        super().__init__(message, error_code, details, 403)


# ========================================
# Database Exceptions
# ========================================

class DatabaseError(BaseAppException):
    """Exception raised when database operations fail"""

    def __init__(
        self,
        message: str = "Database operation failed",
        operation: Optional[str] = None,
        table: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        status_code: int = 500
    ):
        details = {
            "operation": operation,
            "table": table
        }
        super().__init__(message, error_code, details, status_code)


class DuplicateEntryError(DatabaseError):
    """Exception raised when trying to create a duplicate entry"""

    def __init__(
        self,
        message: str = "Duplicate entry",
        table: Optional[str] = None
    ):
        super().__init__(message, table=table, error_code=ErrorCode.DUPLICATE_ENTRY, status_code=409)


class ConcurrentModificationError(DatabaseError):
    """
    Exception raised when a row changed between read and write.

    The whole operation may be retried by the caller; nothing was committed.
    """

    def __init__(
        self,
        message: str = "The record was modified by another request",
        table: Optional[str] = None,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None
    ):
        super().__init__(
            message,
            operation="update",
            table=table,
            error_code=ErrorCode.CONCURRENT_MODIFICATION,
            status_code=409
        )
        self.details.update({
            "expected_version": expected_version,
            "actual_version": actual_version
        })


# ========================================
# Configuration Exceptions
# ========================================

class ConfigurationError(BaseAppException):
    """Exception raised when configuration is invalid"""

    def __init__(
        self,
        message: str = "Configuration error",
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        error_code: ErrorCode = ErrorCode.CONFIGURATION_ERROR
    ):
        details = {
            "config_key": config_key,
            "config_value": str(config_value) if config_value is not None else None
        }
        super().__init__(message, error_code, details, 500)


class RuleNotConfiguredError(ConfigurationError):
    """Exception raised when no procurement rule covers an amount"""

    def __init__(self, amount: int, message: Optional[str] = None):
        super().__init__(
            message or f"No procurement rule covers the amount {amount}",
            config_key="procurement_rule",
            config_value=amount,
            error_code=ErrorCode.RULE_NOT_CONFIGURED
        )


class OverlappingRulesError(ConfigurationError):
    """Exception raised when more than one procurement rule covers an amount"""

    def __init__(self, amount: int, rule_ids: List[str]):
        super().__init__(
            f"{len(rule_ids)} procurement rules cover the amount {amount}",
            config_key="procurement_rule",
            config_value=amount,
            error_code=ErrorCode.OVERLAPPING_RULES
        )
        self.details["rule_ids"] = rule_ids


class AmbiguousApproverError(ConfigurationError):
    """Exception raised when several active users could act on the same step"""

    def __init__(self, role: str, unit: str, user_ids: List[str]):
        super().__init__(
            f"{len(user_ids)} active users hold role '{role}' in unit '{unit}'",
            config_key="approver",
            config_value=role,
            error_code=ErrorCode.AMBIGUOUS_APPROVER
        )
        self.details.update({"unit": unit, "user_ids": user_ids})


# ========================================
# Utility Functions
# ========================================

def create_validation_error(field_errors: Dict[str, List[str]]) -> ValidationError:
    """Create a validation error with field-specific errors"""
    total_errors = sum(len(errors) for errors in field_errors.values())
    message = f"Validation failed with {total_errors} error(s)"
    return ValidationError(message, field_errors)


# Export all exception classes
__all__ = [
    # Enums
    'ErrorCode',

    # Base exceptions
    'BaseAppException',

    # General exceptions
    'ValidationError',
    'ConflictError',
    'ResourceNotFoundError',

    # Resource Not Found exceptions
    'UserNotFoundError',
    'LetterNotFoundError',
    'RuleNotFoundError',
    'ApproverNotFoundError',

    # Auth exceptions
    'AuthorizationError',

    # Database exceptions
    'DatabaseError',
    'DuplicateEntryError',
    'ConcurrentModificationError',

    # Configuration exceptions
    'ConfigurationError',
    'RuleNotConfiguredError',
    'OverlappingRulesError',
    'AmbiguousApproverError',

    # Utility functions
    'create_validation_error'
]
