"""
Core package: exceptions, logging and HTTP middleware.
"""

from procurement.core.exceptions import BaseAppException, ErrorCode
from procurement.core.logging import get_logger

__all__ = ["BaseAppException", "ErrorCode", "get_logger"]
