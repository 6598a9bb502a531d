from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from provisioner.services.command_runner import CommandRunner, SubprocessCommandRunner
from provisioner.services.config import GcpConfig, ProvisioningConfig
from provisioner.services.gcp_client import GcpHttpClient
from provisioner.services.operation_waiter import OperationWaiter
from provisioner.services.setup.project_setup_service import ProjectSetupService


def get_provisioning_config(path: Union[str, Path]) -> ProvisioningConfig:
    """Provider for the declarative project config (YAML file)."""

    return ProvisioningConfig.from_yaml(path)


def get_gcp_client() -> GcpHttpClient:
    """Provider for the authorized GCP REST client; the caller must close it."""

    return GcpHttpClient(GcpConfig.from_env())


def get_command_runner() -> CommandRunner:
    return SubprocessCommandRunner()


def get_project_setup_service(
    *,
    config: ProvisioningConfig,
    client: GcpHttpClient,
    runner: Optional[CommandRunner] = None,
) -> ProjectSetupService:
    return ProjectSetupService.from_client(
        config=config,
        client=client,
        runner=runner or get_command_runner(),
        waiter=OperationWaiter(),
    )
