"""SSH 명령 실행 서비스

홉 체인 연결 -> 최종 홉에서 커맨드 순차 실행 -> 모든 연결 역순 종료.
외부에서 사용하는 유일한 진입점이다.

사용 예제:
    service = SSHService()
    hops = [
        HopConfig(host="bastion.example.com", username="bastion-user", password="..."),
        HopConfig(host="private-server.internal", username="target-user", password="..."),
    ]
    try:
        results = await service.execute_commands(hops, ["hostname", "df -h"], timeout=60)
    except SSHError as e:
        partial_results = e.results
"""

import asyncio
import socket
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

import paramiko
from pydantic import ValidationError

from hopexec.core.config import settings
from hopexec.core.exceptions import SSHError, SSHErrorType
from hopexec.infrastructures.ssh.chain import ConnectionChain
from hopexec.infrastructures.ssh.dialer import HopChainDialer
from hopexec.infrastructures.ssh.error_classifier import classify_ssh_error
from hopexec.infrastructures.ssh.executor import CommandExecutor
from hopexec.infrastructures.ssh.models.connection import HopConfig, SessionState
from hopexec.infrastructures.ssh.models.ssh_result import CommandResult
from hopexec.core.logger import logger


HopLike = Union[HopConfig, Mapping[str, Any]]


class SSHService:
    """다중 홉 SSH 명령 실행 서비스

    호출마다 독립된 연결 체인과 스레드 풀을 사용하므로 호출 간 공유 상태가 없다.
    """

    def __init__(
        self,
        default_timeout: Optional[float] = None,
        max_workers: Optional[int] = None,
        transport_factory: Callable = paramiko.Transport,
        socket_factory: Callable = socket.create_connection
    ):
        self._default_timeout = default_timeout or settings.SSH_DEFAULT_TIMEOUT
        self._max_workers = max(max_workers or settings.SSH_EXECUTOR_WORKERS, 4)
        self._transport_factory = transport_factory
        self._socket_factory = socket_factory

    async def execute_commands(
        self,
        hops: Sequence[HopLike],
        commands: Sequence[str],
        timeout: Optional[float] = None
    ) -> List[CommandResult]:
        """여러 SSH 홉을 거쳐 최종 호스트에서 커맨드 실행

        Args:
            hops: 홉 설정 목록 (첫 번째는 직접 연결, 이후는 터널링)
            commands: 최종 호스트에서 실행할 커맨드 목록
            timeout: 홉별 연결 / 커맨드별 실행 타임아웃 (초). None 또는 0 이면 기본값

        Returns:
            제출 순서대로의 CommandResult 리스트

        Raises:
            SSHError: 분류된 실패. results 에 실패 이전까지의 결과가 담긴다
        """
        hop_configs = self._validate(hops, commands)
        effective_timeout = timeout or self._default_timeout

        state = SessionState.UNCONNECTED
        pool = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="hopexec-ssh")
        try:
            async with ConnectionChain(executor=pool) as chain:
                try:
                    state = SessionState.CONNECTING
                    dialer = HopChainDialer(
                        executor=pool,
                        transport_factory=self._transport_factory,
                        socket_factory=self._socket_factory
                    )
                    await dialer.dial(hop_configs, effective_timeout, chain)

                    state = SessionState.FULLY_CONNECTED
                    executor = CommandExecutor(chain.final, effective_timeout, executor=pool)

                    state = SessionState.EXECUTING
                    results = await executor.execute_commands(commands)
                except SSHError as e:
                    e.stage = state.value
                    raise
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.exception(f"[SSH] 예상치 못한 에러 ({state.value})")
                    error = classify_ssh_error(e)
                    error.stage = state.value
                    raise error from e
        except SSHError as e:
            logger.error(f"[SSH] 실행 실패 [{SessionState.CLOSED_FAILED.value}] stage={e.stage}: {e.to_log_dict()}")
            raise
        finally:
            pool.shutdown(wait=False)

        logger.info(f"[SSH] 실행 완료 [{SessionState.CLOSED_SUCCESS.value}]: {len(results)}개 커맨드")
        return results

    async def execute_commands_on_server(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        commands: Sequence[str],
        timeout: Optional[float] = None
    ) -> List[CommandResult]:
        """단일 서버에 커맨드를 실행하는 간편 메서드"""
        hop = {"host": host, "port": port, "username": username, "password": password}
        return await self.execute_commands([hop], commands, timeout)

    @staticmethod
    def _validate(hops: Sequence[HopLike], commands: Sequence[str]) -> List[HopConfig]:
        """네트워크 호출 전 입력 검증"""
        if not hops:
            raise SSHError(
                SSHErrorType.VALIDATION_ERROR,
                "At least one hop configuration is required",
                stage=SessionState.UNCONNECTED.value
            )

        if not commands:
            raise SSHError(
                SSHErrorType.VALIDATION_ERROR,
                "At least one command is required",
                stage=SessionState.UNCONNECTED.value
            )

        if isinstance(commands, str) or not all(isinstance(command, str) for command in commands):
            raise SSHError(
                SSHErrorType.VALIDATION_ERROR,
                "Commands must be a sequence of strings",
                stage=SessionState.UNCONNECTED.value
            )

        try:
            return [hop if isinstance(hop, HopConfig) else HopConfig.model_validate(hop) for hop in hops]
        except ValidationError as e:
            # 입력값(비밀번호 포함)은 메시지에 남기지 않는다
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors(include_input=False)
            )
            raise SSHError(
                SSHErrorType.VALIDATION_ERROR,
                f"Invalid hop configuration: {problems}",
                stage=SessionState.UNCONNECTED.value,
                original_exception=e
            ) from e


def is_ssh_error(error: BaseException) -> bool:
    """에러가 분류된 SSH 에러인지 확인"""
    return isinstance(error, SSHError)


def get_ssh_error_type(error: BaseException) -> Optional[str]:
    """SSH 에러의 종류 문자열 반환, SSH 에러가 아니면 None"""
    if isinstance(error, SSHError):
        return error.error_type.value
    return None
