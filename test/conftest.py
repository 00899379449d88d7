"""
In-memory stand-ins for the network side of the SSH executor.

FakeNetwork plays the role of every host reachable in a test: it hands out
fake sockets for direct connections, fake transports that authenticate
against a credential table, tunnels opened through those transports and
sessions whose output is scripted per command. Every transport open and
close is recorded in order so teardown can be checked exactly.
"""

import threading
import time
from typing import Dict, List, Optional, Sequence, Set, Tuple

import paramiko
import pytest

from hopexec.infrastructures.ssh import HopConfig, SSHService

# Upper bound for a "hanging" remote process, only reached if a test forgets to close it
HANG_LIMIT = 5.0


class CommandScript:
    """Scripted behaviour of one remote command.

    With ``backpressure`` the remote side behaves like a process whose stderr
    pipe is full: stdout produces nothing until every stderr chunk has been
    read, and the exit status only arrives once both streams reached EOF.
    Reading the streams one after another then stalls until HANG_LIMIT.
    """

    def __init__(
        self,
        stdout: Sequence[bytes] = (),
        stderr: Sequence[bytes] = (),
        exit_status: Optional[int] = 0,
        hang: bool = False,
        exec_error: Optional[Exception] = None,
        backpressure: bool = False,
    ):
        self.stdout = list(stdout)
        self.stderr = list(stderr)
        self.exit_status = exit_status
        self.hang = hang
        self.exec_error = exec_error
        self.backpressure = backpressure


class FakeSocket:
    def __init__(self, network: "FakeNetwork", host: str, port: int, via: Optional[str] = None):
        self.network = network
        self.host = host
        self.port = port
        self.via = via
        self.closed = False

    def close(self):
        self.closed = True


class FakeChannel:
    def __init__(self, network: "FakeNetwork", host: str):
        self._network = network
        self.host = host
        self.command: Optional[str] = None
        self._script: Optional[CommandScript] = None
        self._stdout: List[bytes] = []
        self._stderr: List[bytes] = []
        self._closed = threading.Event()
        self._stdout_done = threading.Event()
        self._stderr_done = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def exec_command(self, command: str):
        self.command = command
        self._network.executed.append(command)
        script = self._network.scripts.get(command, CommandScript())
        if script.exec_error is not None:
            raise script.exec_error
        self._script = script
        self._stdout = list(script.stdout)
        self._stderr = list(script.stderr)

    def recv(self, nbytes: int) -> bytes:
        if self._script.backpressure:
            self._wait_for(self._stderr_done)
        return self._read(self._stdout, nbytes, self._stdout_done)

    def recv_stderr(self, nbytes: int) -> bytes:
        return self._read(self._stderr, nbytes, self._stderr_done)

    def recv_exit_status(self) -> int:
        if self._script.hang:
            self._closed.wait(HANG_LIMIT)
            return -1
        if self._script.backpressure:
            self._wait_for(self._stdout_done)
            self._wait_for(self._stderr_done)
            if self.closed:
                return -1
        if self._script.exit_status is None:
            return -1
        return self._script.exit_status

    def close(self):
        if not self._closed.is_set():
            self._closed.set()
            self._network.closed_sessions.append(self.command)

    def _wait_for(self, done: threading.Event):
        # a closed channel releases every waiter, as paramiko does
        deadline = time.monotonic() + HANG_LIMIT
        while not done.is_set() and not self.closed and time.monotonic() < deadline:
            done.wait(0.01)

    def _read(self, chunks: List[bytes], nbytes: int, done: threading.Event) -> bytes:
        if self.closed:
            return b""
        if chunks:
            chunk = chunks[0]
            data, rest = chunk[:nbytes], chunk[nbytes:]
            if rest:
                chunks[0] = rest
            else:
                chunks.pop(0)
            self._network.read_sizes.append(nbytes)
            return data
        if self._script.hang:
            self._closed.wait(HANG_LIMIT)
            return b""
        done.set()
        return b""


class FakeTransport:
    """Stands in for paramiko.Transport; built from a FakeSocket like the real one."""

    def __init__(self, sock: FakeSocket):
        self.sock = sock
        self.network = sock.network
        self.host = sock.host
        self.authenticated = False
        self.initial_kex_done = False
        self.closed = False
        self.started_with_timeout = None
        self.keepalive = None
        self.network.transports.append(self)

    def start_client(self, event=None, timeout=None):
        self.started_with_timeout = timeout
        error = self.network.handshake_errors.get(self.host)
        if error is not None:
            raise error
        # like paramiko, a negotiation that runs past the timeout returns without raising
        if self.host in self.network.stalled_hosts:
            return
        self.initial_kex_done = True

    def auth_password(self, username: str, password: str):
        if self.closed or not self.initial_kex_done:
            raise paramiko.SSHException("No existing session")
        expected = self.network.users.get(self.host)
        if expected is not None and expected != (username, password):
            raise paramiko.AuthenticationException("Authentication failed.")
        self.authenticated = True
        self.network.events.append(("open", self.host))

    def is_authenticated(self) -> bool:
        return self.authenticated

    def is_active(self) -> bool:
        return not self.closed

    def set_keepalive(self, interval: int):
        self.keepalive = interval

    def open_channel(self, kind, dest_addr, src_addr=None, window_size=None, max_packet_size=None, timeout=None):
        host, port = dest_addr
        self.network.tunnel_requests.append((self.host, host, port, kind))
        error = self.network.tunnel_errors.get(host)
        if error is not None:
            raise error
        return FakeSocket(self.network, host, port, via=self.host)

    def open_session(self, window_size=None, max_packet_size=None, timeout=None):
        if self.network.session_error is not None:
            raise self.network.session_error
        channel = FakeChannel(self.network, self.host)
        self.network.sessions.append(channel)
        return channel

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.sock.close()
        self.network.events.append(("close" if self.authenticated else "discard", self.host))


class FakeNetwork:
    def __init__(self):
        self.users: Dict[str, Tuple[str, str]] = {}
        self.scripts: Dict[str, CommandScript] = {}
        self.connect_errors: Dict[str, Exception] = {}
        self.handshake_errors: Dict[str, Exception] = {}
        self.tunnel_errors: Dict[str, Exception] = {}
        self.stalled_hosts: Set[str] = set()
        self.session_error: Optional[Exception] = None

        self.dialed: List[Tuple[str, int]] = []
        self.tunnel_requests: List[tuple] = []
        self.transports: List[FakeTransport] = []
        self.sessions: List[FakeChannel] = []
        self.executed: List[str] = []
        self.closed_sessions: List[str] = []
        self.read_sizes: List[int] = []
        self.events: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def create_connection(self, address, timeout=None, source_address=None):
        host, port = address
        with self._lock:
            self.dialed.append((host, port))
        error = self.connect_errors.get(host)
        if error is not None:
            raise error
        return FakeSocket(self, host, port)

    def script(self, command: str, **kwargs) -> CommandScript:
        self.scripts[command] = CommandScript(**kwargs)
        return self.scripts[command]

    @property
    def opened_hosts(self) -> List[str]:
        return [host for kind, host in self.events if kind == "open"]

    @property
    def closed_hosts(self) -> List[str]:
        return [host for kind, host in self.events if kind == "close"]

    @property
    def live_transports(self) -> List[FakeTransport]:
        return [transport for transport in self.transports if not transport.closed]


def make_hops(*hosts: str, port: int = 22) -> List[HopConfig]:
    return [HopConfig(host=host, port=port, username=f"{host}-user", password=f"{host}-pw") for host in hosts]


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def service(network: FakeNetwork) -> SSHService:
    return SSHService(
        default_timeout=5,
        transport_factory=FakeTransport,
        socket_factory=network.create_connection,
    )
