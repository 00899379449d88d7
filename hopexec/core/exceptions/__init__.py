"""Exception handling package for the application

This package provides:
- Error codes and the SSH failure taxonomy (error_codes.py)
- Custom exception classes (base.py)
"""

# Error codes
from hopexec.core.exceptions.error_codes import (
    ErrorCode,
    ErrorCategory,
    SSHErrorType,
    get_error_category,
)

# Base exceptions
from hopexec.core.exceptions.base import (
    BaseAppException,
    SSHException,
    SSHError,
)

__all__ = [
    # Error codes
    "ErrorCode",
    "ErrorCategory",
    "SSHErrorType",
    "get_error_category",
    # Base exceptions
    "BaseAppException",
    "SSHException",
    "SSHError",
]
