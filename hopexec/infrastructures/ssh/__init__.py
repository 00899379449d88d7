"""SSH Infrastructure Module

Executes shell commands on a host reached through a chain of SSH hops and
returns each command's output and exit status, or a classified SSHError.

Usage:
    from hopexec.infrastructures.ssh import SSHService, HopConfig

    service = SSHService()
    results = await service.execute_commands(
        [HopConfig(host="bastion", username="user", password="pw")],
        ["uptime"],
    )
"""

from hopexec.infrastructures.ssh.models.connection import HopConfig, SessionState
from hopexec.infrastructures.ssh.models.ssh_result import CommandResult
from hopexec.infrastructures.ssh.error_classifier import classify_ssh_error
from hopexec.infrastructures.ssh.chain import ConnectionChain, HopConnection
from hopexec.infrastructures.ssh.dialer import HopChainDialer
from hopexec.infrastructures.ssh.executor import CommandExecutor
from hopexec.infrastructures.ssh.service import (
    SSHService,
    is_ssh_error,
    get_ssh_error_type,
)
from hopexec.core.exceptions import SSHError, SSHErrorType

__all__ = [
    "HopConfig",
    "SessionState",
    "CommandResult",
    "classify_ssh_error",
    "ConnectionChain",
    "HopConnection",
    "HopChainDialer",
    "CommandExecutor",
    "SSHService",
    "is_ssh_error",
    "get_ssh_error_type",
    "SSHError",
    "SSHErrorType",
]
