"""커스텀 예외 클래스 정의

예외 계층도:
    BaseAppException
    +-- SSHException (SSH 예외)
        +-- SSHError (분류된 SSH 실패, SSHErrorType 으로 종류 구분)
"""

from typing import Optional, Dict, Any, List
from hopexec.core.exceptions.error_codes import (
    ErrorCode,
    ErrorCategory,
    SSHErrorType,
    get_error_category,
)


class BaseAppException(Exception):
    """Base application exception. All custom exceptions inherit from this."""

    def __init__(
        self,
        error_code: ErrorCode,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.error_code = error_code
        self.detail = detail
        self.context = context or {}
        self.original_exception = original_exception

        message = error_code.message
        if detail:
            message = f"{message}: {detail}"

        super().__init__(message)

    @property
    def code(self) -> int:
        return self.error_code.code

    @property
    def http_status(self) -> int:
        return self.error_code.http_status

    @property
    def category(self) -> ErrorCategory:
        return get_error_category(self.code)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for client response"""
        result = {
            "error_code": self.code,
            "message": self.error_code.message,
            "category": self.category.value,
        }
        if self.detail:
            result["detail"] = self.detail
        return result

    def to_log_dict(self) -> Dict[str, Any]:
        """Convert to logging dictionary with more information"""
        log_data = self.to_dict()
        if self.context:
            log_data["context"] = self.context
        if self.original_exception:
            log_data["original_error"] = {
                "type": type(self.original_exception).__name__,
                "message": str(self.original_exception),
            }
        return log_data

    def __str__(self) -> str:
        return f"[{self.code}] {self.error_code.message}" + (
            f": {self.detail}" if self.detail else ""
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"code={self.code}, "
            f"message='{self.error_code.message}', "
            f"detail='{self.detail}'"
            f")"
        )


# SSH Exceptions (2XXX)
class SSHException(BaseAppException):
    """SSH related base exception"""
    pass


class SSHError(SSHException):
    """Classified SSH failure returned to callers of the executor.

    ``results`` holds the command results completed before the failure, in
    submission order. ``stage`` names the orchestrator state the failure was
    raised from.
    """

    def __init__(
        self,
        error_type: SSHErrorType,
        message: str,
        host: Optional[str] = None,
        command: Optional[str] = None,
        results: Optional[List[Any]] = None,
        stage: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.error_type = SSHErrorType(error_type)
        self.message = message
        self.host = host
        self.command = command
        self.results = list(results or [])
        self.stage = stage

        error_context = {}
        if host:
            error_context["host"] = host
        if command:
            error_context["command"] = command

        super().__init__(
            self.error_type.error_code,
            detail=message,
            context={**error_context, **(context or {})},
            original_exception=original_exception
        )

    def with_context(self, host: Optional[str] = None, command: Optional[str] = None) -> "SSHError":
        """Fill in host/command when they are not set yet"""
        if host and not self.host:
            self.host = host
            self.context["host"] = host
        if command and not self.command:
            self.command = command
            self.context["command"] = command
        return self

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.error_type.value,
            "message": self.message,
            "error_code": self.code,
        }
        if self.host:
            result["host"] = self.host
        if self.command:
            result["command"] = self.command
        return result

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"type={self.error_type.value}, "
            f"message='{self.message}', "
            f"host={self.host!r}, "
            f"command={self.command!r}"
            f")"
        )
