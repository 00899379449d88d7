"""SSH 에러 분류기

paramiko / socket 레벨의 예외를 SSHErrorType 중 하나로 매핑하는 순수 함수.
구조적인 예외 타입을 먼저 확인하고, 구분되지 않는 경우에만 메시지를 검사한다.

검사 순서 (먼저 일치하는 항목 적용):
    timeout -> refused -> host not found -> tunnel/channel -> auth -> default
"""

import asyncio
import socket
from typing import Optional

import paramiko
from paramiko.ssh_exception import NoValidConnectionsError

from hopexec.core.exceptions import SSHError, SSHErrorType


_TIMEOUT_MARKERS = ("timed out", "timeout")
_REFUSED_MARKERS = ("connection refused", "refused")
_HOST_NOT_FOUND_MARKERS = (
    "no such host",
    "name or service not known",
    "nodename nor servname",
    "name resolution",
    "getaddrinfo failed",
    "lookup",
)
_TUNNEL_MARKERS = ("tunnel", "channel", "direct-tcpip", "administratively prohibited", "connect failed")
_AUTH_MARKERS = ("auth",)


def classify_ssh_error(
    error: BaseException,
    host: Optional[str] = None,
    command: Optional[str] = None,
    default: SSHErrorType = SSHErrorType.UNKNOWN_ERROR
) -> SSHError:
    """원시 예외를 분류된 SSHError 로 변환

    Args:
        error: 전송/인증 계층에서 발생한 예외
        host: 실패한 홉의 호스트
        command: 실행 중이던 커맨드 (있는 경우)
        default: 어떤 규칙에도 해당하지 않을 때 사용할 종류

    Returns:
        SSHError: 분류 결과 (raise 하지 않음)
    """
    if isinstance(error, SSHError):
        return error.with_context(host=host, command=command)

    # HopChainDialer 는 이 에러를 만들지 않는다. paramiko.SSHClient.connect 에러를 넘기는 호출자용
    if isinstance(error, NoValidConnectionsError) and error.errors:
        inner = next(iter(error.errors.values()))
        classified = classify_ssh_error(inner, host=host, command=command, default=default)
        classified.original_exception = error
        return classified

    raw_message = str(error) or type(error).__name__
    lowered = raw_message.lower()
    target = host or "remote host"

    if _is_timeout(error, lowered):
        error_type = SSHErrorType.CONNECTION_TIMEOUT
        message = f"Connection timeout while connecting to {target}"
    elif isinstance(error, ConnectionRefusedError) or _contains(lowered, _REFUSED_MARKERS):
        error_type = SSHErrorType.CONNECTION_REFUSED
        message = f"Connection refused to {target}"
    elif isinstance(error, socket.gaierror) or _contains(lowered, _HOST_NOT_FOUND_MARKERS):
        error_type = SSHErrorType.HOST_NOT_FOUND
        message = f"Host not found: {target}"
    elif isinstance(error, paramiko.ChannelException) or _contains(lowered, _TUNNEL_MARKERS):
        error_type = SSHErrorType.TUNNELING_FAILED
        message = f"Tunneling failed to {target}: {raw_message}"
    elif isinstance(error, paramiko.AuthenticationException) or _contains(lowered, _AUTH_MARKERS):
        error_type = SSHErrorType.AUTHENTICATION_FAILED
        message = f"Authentication failed for {target}"
    elif default == SSHErrorType.TUNNELING_FAILED:
        error_type = default
        message = f"Tunneling failed to {target}: {raw_message}"
    else:
        error_type = default
        message = f"Unknown error while connecting to {target}: {raw_message}"

    return SSHError(
        error_type=error_type,
        message=message,
        host=host,
        command=command,
        original_exception=error if isinstance(error, Exception) else None
    )


def _is_timeout(error: BaseException, lowered: str) -> bool:
    if isinstance(error, (socket.timeout, TimeoutError, asyncio.TimeoutError)):
        return True
    return _contains(lowered, _TIMEOUT_MARKERS)


def _contains(message: str, markers) -> bool:
    return any(marker in message for marker in markers)
