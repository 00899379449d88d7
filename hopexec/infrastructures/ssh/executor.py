"""명령 실행기

최종 홉 연결 위에서 커맨드를 하나씩 순차 실행한다. 커맨드마다 새 세션(채널)을 열고
stdout 수집, stderr 수집, 종료 상태 대기를 독립된 태스크로 동시에 진행하며,
전체 완료를 타임아웃과 경쟁시킨다. 타임아웃 시 세션을 강제로 닫는다.
"""

import asyncio
import time
from concurrent.futures import Executor
from typing import Callable, List, Optional, Sequence, Tuple

from hopexec.core.config import settings
from hopexec.core.exceptions import SSHError, SSHErrorType
from hopexec.infrastructures.ssh.chain import HopConnection
from hopexec.infrastructures.ssh.models.ssh_result import CommandResult
from hopexec.infrastructures.ssh.utils.ssh_utils import run_in_executor
from hopexec.core.logger import logger


# 종료 상태 없이 채널이 닫혔을 때 paramiko 가 돌려주는 값
MISSING_EXIT_STATUS = -1


class CommandExecutor:
    """최종 홉 연결에서 커맨드 배치를 실행"""

    def __init__(
        self,
        connection: HopConnection,
        timeout: float,
        executor: Optional[Executor] = None,
        read_buffer_size: Optional[int] = None
    ):
        self._connection = connection
        self._timeout = timeout
        self._executor = executor
        self._read_buffer_size = read_buffer_size or settings.SSH_READ_BUFFER_SIZE

    async def execute_commands(self, commands: Sequence[str]) -> List[CommandResult]:
        """커맨드를 순서대로 실행하고 첫 실패에서 중단

        Returns:
            제출 순서대로의 CommandResult 리스트

        Raises:
            SSHError: 실패한 커맨드 정보와 그 이전까지의 결과(results)를 포함
        """
        results: List[CommandResult] = []

        for command in commands:
            try:
                result = await self.execute_command(command)
            except SSHError as e:
                e.results = list(results)
                raise
            results.append(result)

        return results

    async def execute_command(self, command: str) -> CommandResult:
        """단일 커맨드 실행 및 완료 대기

        0이 아닌 종료 코드는 정상 결과로 반환된다.

        Raises:
            SSHError: 세션 생성 실패, 실행 에러(COMMAND_EXECUTION_FAILED) 또는 타임아웃(CONNECTION_TIMEOUT)
        """
        host = self._connection.host

        try:
            channel = await self._run(self._connection.transport.open_session, timeout=self._timeout)
        except Exception as e:
            logger.error(f"[SSH] 세션 생성 실패: {command} - {e}")
            raise SSHError(
                SSHErrorType.COMMAND_EXECUTION_FAILED,
                f"Failed to create session: {e}",
                host=host,
                command=command,
                original_exception=e
            ) from e

        try:
            logger.info(f"[SSH] 명령 실행 중: {command}")
            start_time = time.perf_counter()

            try:
                stdout, stderr, exit_status = await asyncio.wait_for(
                    self._run_process(channel, command),
                    timeout=self._timeout
                )
            except asyncio.TimeoutError as e:
                logger.error(f"[SSH] 명령 타임아웃 ({self._timeout}s): {command}")
                raise SSHError(
                    SSHErrorType.CONNECTION_TIMEOUT,
                    f"Command execution timed out after {self._timeout}s",
                    host=host,
                    command=command,
                    original_exception=e
                ) from e
            except Exception as e:
                logger.error(f"[SSH] 명령 실행 실패: {command} - {e}")
                raise SSHError(
                    SSHErrorType.COMMAND_EXECUTION_FAILED,
                    f"Command execution error: {e}",
                    host=host,
                    command=command,
                    original_exception=e
                ) from e

            if exit_status == MISSING_EXIT_STATUS:
                logger.error(f"[SSH] 종료 상태 없이 세션이 닫힘: {command}")
                raise SSHError(
                    SSHErrorType.COMMAND_EXECUTION_FAILED,
                    "Command execution error: remote process exited without an exit status",
                    host=host,
                    command=command
                )

            executed_time = time.perf_counter() - start_time
            if exit_status == 0:
                logger.info(f"[SSH] 명령 완료: exit_code={exit_status}, executed_time={executed_time:.5f}s")
            else:
                logger.warning(f"[SSH] 명령 완료: exit_code={exit_status}, executed_time={executed_time:.5f}s")

            return CommandResult(
                command=command,
                stdout=stdout,
                stderr=stderr,
                exit_code=exit_status
            )
        finally:
            await self._close_session(channel)

    async def _run_process(self, channel, command: str) -> Tuple[str, str, int]:
        """원격 프로세스를 시작하고 stdout, stderr, 종료 상태를 동시에 수집"""
        await self._run(channel.exec_command, command)

        stdout, stderr, exit_status = await asyncio.gather(
            self._drain(channel.recv),
            self._drain(channel.recv_stderr),
            self._run(channel.recv_exit_status)
        )
        return stdout, stderr, exit_status

    async def _drain(self, read: Callable[[int], bytes]) -> str:
        """스트림이 EOF 가 될 때까지 읽어 누적

        바이트 단위로 누적한 뒤 한 번에 디코딩하므로 읽기 경계에서 잘린 멀티바이트 문자도 보존된다.
        """
        buffer = bytearray()
        while True:
            chunk = await self._run(read, self._read_buffer_size)
            if not chunk:
                break
            buffer.extend(chunk)
        return buffer.decode("utf-8", errors="replace")

    async def _close_session(self, channel) -> None:
        # 닫힌 채널에서는 대기 중인 recv / recv_exit_status 가 즉시 반환된다
        try:
            await self._run(channel.close)
        except Exception as e:
            logger.warning(f"[SSH] 세션 종료 중 에러: {e}")

    async def _run(self, func, *args, **kwargs):
        return await run_in_executor(func, *args, executor=self._executor, **kwargs)
