"""홉 체인 다이얼러

첫 번째 홉은 TCP 로 직접 연결하고, 이후의 각 홉은 직전 홉의 Transport 위에
direct-tcpip 채널(터널)을 열어 그 채널 위에서 새 SSH 핸드셰이크와 비밀번호 인증을 수행한다.
"""

import socket
from concurrent.futures import Executor
from typing import Callable, Optional, Sequence

import paramiko

from hopexec.core.config import settings
from hopexec.core.exceptions import SSHError, SSHErrorType
from hopexec.infrastructures.ssh.chain import ConnectionChain, HopConnection
from hopexec.infrastructures.ssh.error_classifier import classify_ssh_error
from hopexec.infrastructures.ssh.models.connection import HopConfig
from hopexec.infrastructures.ssh.utils.ssh_utils import run_in_executor
from hopexec.core.logger import logger


TUNNEL_ORIGIN = ("127.0.0.1", 0)


class HopChainDialer:
    """홉 목록을 순서대로 연결하여 ConnectionChain 에 쌓는다.

    Args:
        executor: 블로킹 paramiko 호출을 실행할 Executor
        transport_factory: 소켓(또는 채널)으로 Transport 를 만드는 callable
        socket_factory: 첫 번째 홉 TCP 연결용 callable (address, timeout=...)
    """

    def __init__(
        self,
        executor: Optional[Executor] = None,
        transport_factory: Callable = paramiko.Transport,
        socket_factory: Callable = socket.create_connection
    ):
        self._executor = executor
        self._transport_factory = transport_factory
        self._socket_factory = socket_factory

    async def dial(self, hops: Sequence[HopConfig], timeout: float, chain: ConnectionChain) -> ConnectionChain:
        """모든 홉 연결

        실패한 홉 이후로는 시도하지 않는다. 이미 열린 연결은 chain 에 남아 있으므로
        호출자가 chain.close() 로 정리해야 한다.

        Raises:
            SSHError: 실패한 홉의 host 와 hop_index 가 포함된 분류된 에러
        """
        for index, hop in enumerate(hops):
            try:
                if index == 0:
                    connection = await self._dial_direct(hop, timeout)
                else:
                    connection = await self._dial_through(chain.final, hop, index, timeout)
            except SSHError as e:
                e.context["hop_index"] = index
                logger.error(f"[SSH] hop {index} ({hop.address}) 연결 실패: {e.error_type.value} - {e.message}")
                raise

            chain.push(connection)

        logger.info(f"[SSH] {len(chain)}개 홉 연결 완료: {' -> '.join(hop.address for hop in hops)}")
        return chain

    async def _dial_direct(self, hop: HopConfig, timeout: float) -> HopConnection:
        logger.info(f"[SSH] {hop.address}에 연결 중")
        try:
            sock = await self._run(self._socket_factory, (hop.host, hop.port), timeout=timeout)
        except Exception as e:
            raise classify_ssh_error(e, host=hop.host) from e

        logger.debug(f"[SSH] {hop.address}에 TCP 연결 성공")
        return await self._handshake(sock, hop, 0, timeout)

    async def _dial_through(self, previous: HopConnection, hop: HopConfig, index: int, timeout: float) -> HopConnection:
        logger.info(f"[SSH] {previous.hop.address}를 통해 {hop.address}로 터널 생성 중")
        try:
            tunnel = await self._run(
                previous.transport.open_channel,
                "direct-tcpip",
                (hop.host, hop.port),
                TUNNEL_ORIGIN,
                timeout=timeout
            )
        except Exception as e:
            raise classify_ssh_error(e, host=hop.host, default=SSHErrorType.TUNNELING_FAILED) from e

        logger.debug(f"[SSH] {hop.address}로 터널 생성 완료")
        return await self._handshake(tunnel, hop, index, timeout)

    async def _handshake(self, sock, hop: HopConfig, index: int, timeout: float) -> HopConnection:
        """sock 위에서 SSH 핸드셰이크 및 비밀번호 인증 수행

        실패 시 이 홉의 Transport(또는 소켓)는 여기서 닫힌다.
        """
        try:
            transport = self._transport_factory(sock)
        except Exception as e:
            await self._run(sock.close)
            raise classify_ssh_error(e, host=hop.host) from e

        transport.banner_timeout = timeout
        transport.handshake_timeout = timeout
        transport.auth_timeout = timeout

        try:
            await self._run(transport.start_client, timeout=timeout)
            # start_client 는 타임아웃이 지나면 예외 없이 반환한다
            if not (transport.is_active() and transport.initial_kex_done):
                raise socket.timeout(f"SSH handshake with {hop.address} timed out after {timeout}s")
            logger.debug(f"[SSH] {hop.host}에 대한 SSH 핸드셰이크 완료")

            await self._run(transport.auth_password, hop.username, hop.password)
            if not transport.is_authenticated():
                raise paramiko.AuthenticationException("Authentication failed.")
        except Exception as e:
            await self._run(transport.close)
            cause = socket.timeout(str(e)) if _is_banner_timeout(e) else e
            error = classify_ssh_error(cause, host=hop.host)
            error.original_exception = e
            raise error from e

        if settings.SSH_KEEPALIVE_INTERVAL > 0:
            transport.set_keepalive(settings.SSH_KEEPALIVE_INTERVAL)

        logger.info(f"[SSH] {hop.address}에 {hop.username}로 성공적으로 연결됨")
        return HopConnection(hop, transport, index=index)

    async def _run(self, func, *args, **kwargs):
        return await run_in_executor(func, *args, executor=self._executor, **kwargs)


def _is_banner_timeout(error: BaseException) -> bool:
    """배너 대기 타임아웃 여부

    paramiko 는 배너 대기 중 소켓 타임아웃을 SSHException("Error reading SSH protocol banner") 로 감싸서 보고한다.
    """
    if not isinstance(error, paramiko.SSHException) or "protocol banner" not in str(error):
        return False
    return isinstance(error.__context__, (socket.timeout, TimeoutError))
