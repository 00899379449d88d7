from dependency_injector import containers, providers

from hopexec.core.config import settings
from hopexec.infrastructures.ssh.service import SSHService


class AppContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    config.from_dict(settings.model_dump())

    ssh_service = providers.Factory(
        SSHService,
        default_timeout=config.SSH_DEFAULT_TIMEOUT,
        max_workers=config.SSH_EXECUTOR_WORKERS,
    )
