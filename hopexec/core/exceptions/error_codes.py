"""Error code system

Error code structure (5 digits):
- 1st digit: Category (1=General, 2=SSH)
- 2nd-3rd digits: Sub-category
- 4th-5th digits: Specific error

Example: 20001 = SSH(2) Connection(00) Timeout(01)
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """Error categories"""
    GENERAL = "1"
    SSH = "2"


class ErrorCode(Enum):
    """Error code definitions. Each code is (code, message, http_status) tuple."""

    # 1XXX: General Errors
    UNKNOWN_ERROR = (10099, "Unknown error occurred", 500)

    VALIDATION_ERROR = (12000, "Validation failed", 422)

    # 2XXX: SSH Errors
    SSH_CONNECTION_TIMEOUT = (20001, "SSH connection timeout", 504)
    SSH_CONNECTION_REFUSED = (20002, "SSH connection refused", 503)
    SSH_HOST_NOT_FOUND = (20006, "SSH host not found", 502)
    SSH_TUNNELING_FAILED = (20007, "SSH tunneling failed", 502)

    SSH_AUTH_FAILED = (21000, "SSH authentication failed", 401)

    SSH_COMMAND_FAILED = (22000, "SSH command execution failed", 500)

    @property
    def code(self) -> int:
        """Return error code"""
        return self.value[0]

    @property
    def message(self) -> str:
        """Return error message"""
        return self.value[1]

    @property
    def http_status(self) -> int:
        """Return HTTP status code"""
        return self.value[2]


class SSHErrorType(str, Enum):
    """Closed taxonomy of failures surfaced by the SSH executor."""
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    HOST_NOT_FOUND = "HOST_NOT_FOUND"
    TUNNELING_FAILED = "TUNNELING_FAILED"
    COMMAND_EXECUTION_FAILED = "COMMAND_EXECUTION_FAILED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    @property
    def error_code(self) -> ErrorCode:
        """Return the application error code for this failure kind"""
        return SSH_ERROR_CODE_MAP[self]


SSH_ERROR_CODE_MAP = {
    SSHErrorType.AUTHENTICATION_FAILED: ErrorCode.SSH_AUTH_FAILED,
    SSHErrorType.CONNECTION_REFUSED: ErrorCode.SSH_CONNECTION_REFUSED,
    SSHErrorType.CONNECTION_TIMEOUT: ErrorCode.SSH_CONNECTION_TIMEOUT,
    SSHErrorType.HOST_NOT_FOUND: ErrorCode.SSH_HOST_NOT_FOUND,
    SSHErrorType.TUNNELING_FAILED: ErrorCode.SSH_TUNNELING_FAILED,
    SSHErrorType.COMMAND_EXECUTION_FAILED: ErrorCode.SSH_COMMAND_FAILED,
    SSHErrorType.VALIDATION_ERROR: ErrorCode.VALIDATION_ERROR,
    SSHErrorType.UNKNOWN_ERROR: ErrorCode.UNKNOWN_ERROR,
}


ERROR_CATEGORY_MAP = {
    ErrorCategory.GENERAL: range(10000, 20000),
    ErrorCategory.SSH: range(20000, 30000),
}


def get_error_category(error_code: int) -> ErrorCategory:
    """Get category from error code"""
    for category, code_range in ERROR_CATEGORY_MAP.items():
        if error_code in code_range:
            return category
    return ErrorCategory.GENERAL
