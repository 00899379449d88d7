from concurrent.futures import Executor
from typing import Iterator, List, Optional

import paramiko

from hopexec.infrastructures.ssh.models.connection import HopConfig
from hopexec.infrastructures.ssh.utils.ssh_utils import run_in_executor
from hopexec.core.logger import logger


class HopConnection:
    """인증이 완료된 홉 하나의 SSH Transport 핸들"""

    def __init__(self, hop: HopConfig, transport: paramiko.Transport, index: int = 0):
        self.hop = hop
        self.transport = transport
        self.index = index

    @property
    def host(self) -> str:
        return self.hop.host

    def is_active(self) -> bool:
        return self.transport is not None and self.transport.is_active()

    def close(self) -> None:
        self.transport.close()

    def __repr__(self) -> str:
        return f"HopConnection(index={self.index}, address={self.hop.address!r})"


class ConnectionChain:
    """한 번의 실행 동안 열린 홉 연결 스택

    연결은 연 순서대로 push 되고, close() 시 마지막으로 연 연결부터 닫힌다.
    async with 블록을 빠져나가는 모든 경로(정상 종료, 예외, 취소)에서 정리된다.
    """

    def __init__(self, executor: Optional[Executor] = None):
        self._executor = executor
        self._connections: List[HopConnection] = []

    def push(self, connection: HopConnection) -> None:
        self._connections.append(connection)
        logger.debug(f"[SSH] hop {connection.index} ({connection.hop.address}) 연결 추가, 활성 연결 수: {len(self)}")

    @property
    def final(self) -> HopConnection:
        """마지막 홉 연결 (명령 실행 대상)"""
        if not self._connections:
            raise IndexError("connection chain is empty")
        return self._connections[-1]

    @property
    def connections(self) -> List[HopConnection]:
        return list(self._connections)

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[HopConnection]:
        return iter(list(self._connections))

    async def close(self) -> None:
        """모든 연결을 역순으로 종료

        여러 번 호출해도 안전함. 개별 연결 종료 실패는 로그만 남기고 나머지를 계속 닫는다.
        """
        while self._connections:
            connection = self._connections.pop()
            try:
                await run_in_executor(connection.close, executor=self._executor)
                logger.debug(f"[SSH] hop {connection.index} ({connection.hop.address}) 연결 해제됨")
            except Exception as e:
                logger.warning(f"[SSH] hop {connection.index} ({connection.hop.address}) 연결 해제 중 에러: {e}")

    async def __aenter__(self) -> "ConnectionChain":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()
