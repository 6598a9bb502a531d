from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Sequence

from provisioner.models.gcp import Operation
from provisioner.services.billing_service import BillingLinkError, BillingService
from provisioner.services.command_runner import CommandRunner, SetupCommandError, SubprocessCommandRunner
from provisioner.services.config import ProvisioningConfig
from provisioner.services.errors import ProvisionerError
from provisioner.services.gcp_client import GcpHttpClient
from provisioner.services.operation_waiter import OperationFailed, OperationPollError, OperationWaiter
from provisioner.services.project_service import ProjectService
from provisioner.services.service_usage_service import ServiceEnableError, ServiceUsageService


logger = logging.getLogger(__name__)

STAGE_ENSURE_PROJECT = "ensure-project"
STAGE_ENABLE_BOOTSTRAP = "enable-bootstrap-service"
STAGE_LINK_BILLING = "link-billing"
STAGE_ENABLE_SERVICES = "enable-services"
STAGE_RUN_SETUP = "run-setup"


@dataclass
class ProvisioningResult:
    """What a run actually changed. Empty/False everywhere means a no-op rerun."""

    project_id: str
    created: bool = False
    billing_linked: bool = False
    services_enabled: list[str] = field(default_factory=list)
    commands_run: list[str] = field(default_factory=list)


@contextmanager
def _stage(name: str, project_id: str) -> Iterator[None]:
    logger.debug("Stage %s started (project=%s)", name, project_id)
    try:
        yield
    except ProvisionerError as exc:
        if exc.stage is None:
            exc.stage = name
            exc.project_id = project_id
        raise


def render_setup_command(template: str, project_id: str) -> str:
    """Substitute the project id into a setup command template.

    Plain string replacement of ``${PROJECT_ID}``; no other expressions are
    expanded inside setup commands.
    """

    return template.replace(ProjectSetupService.PROJECT_ID_PLACEHOLDER, project_id)


class ProjectSetupService:
    """Provisioning orchestrator for one daily project.

    Runs, in order and without retries:
    1) ensure the project exists (create it and wait for the operation if not),
    2) enable the billing API so billing can be linked,
    3) link the configured billing account,
    4) enable the configured services in one batch,
    5) run the setup commands.

    Every step checks current state first, so rerunning against a fully
    provisioned project only issues lookups. The project check and creation are
    not atomic; two concurrent runs for the same id can race.
    """

    BOOTSTRAP_SERVICE: str = "cloudbilling.googleapis.com"
    PROJECT_ID_PLACEHOLDER: str = "${PROJECT_ID}"

    def __init__(
        self,
        *,
        config: ProvisioningConfig,
        projects_factory: Callable[[], ProjectService],
        billing: BillingService,
        service_usage: ServiceUsageService,
        runner: Optional[CommandRunner] = None,
        waiter: Optional[OperationWaiter] = None,
    ) -> None:
        self._config = config
        self._projects_factory = projects_factory
        self._projects: Optional[ProjectService] = None
        self._billing = billing
        self._service_usage = service_usage
        self._runner = runner or SubprocessCommandRunner()
        self._waiter = waiter or OperationWaiter()

    @staticmethod
    def from_client(
        *,
        config: ProvisioningConfig,
        client: GcpHttpClient,
        runner: Optional[CommandRunner] = None,
        waiter: Optional[OperationWaiter] = None,
    ) -> "ProjectSetupService":
        return ProjectSetupService(
            config=config,
            projects_factory=lambda: ProjectService(client),
            billing=BillingService(client),
            service_usage=ServiceUsageService(client),
            runner=runner,
            waiter=waiter,
        )

    async def provision(self, project_id: str) -> ProvisioningResult:
        """Public entry point: bring ``project_id`` to the configured state.

        Raises the first :class:`ProvisionerError` encountered, annotated with the
        failing stage and the project id.
        """

        if not project_id:
            raise ValueError("project_id must be provided")

        result = ProvisioningResult(project_id=project_id)

        with _stage(STAGE_ENSURE_PROJECT, project_id):
            result.created = await self._setup_project(project_id=project_id)

        if self._config.billing_account:
            with _stage(STAGE_ENABLE_BOOTSTRAP, project_id):
                if await self._setup_service(project_id=project_id, service_id=self.BOOTSTRAP_SERVICE):
                    result.services_enabled.append(self.BOOTSTRAP_SERVICE)

            with _stage(STAGE_LINK_BILLING, project_id):
                result.billing_linked = await self._setup_billing(project_id=project_id)
        else:
            logger.info("No billingAccount configured; skipping billing link for %s", project_id)

        with _stage(STAGE_ENABLE_SERVICES, project_id):
            result.services_enabled.extend(
                await self._setup_services(project_id=project_id, service_ids=self._config.services)
            )

        with _stage(STAGE_RUN_SETUP, project_id):
            result.commands_run = await self._run_setup_commands(project_id=project_id)

        logger.info(
            "Project %s ready (created=%s, billing_linked=%s, services_enabled=%d, commands_run=%d)",
            project_id,
            result.created,
            result.billing_linked,
            len(result.services_enabled),
            len(result.commands_run),
        )
        return result

    # -----------------
    # Private helpers
    # -----------------

    def _project_service(self) -> ProjectService:
        if self._projects is None:
            self._projects = self._projects_factory()
        return self._projects

    async def _setup_project(self, *, project_id: str) -> bool:
        projects = self._project_service()

        existing = await projects.get_project(project_id)
        if existing is not None:
            logger.info("Project %s already exists (state=%s)", project_id, existing.state)
            return False

        logger.info("Creating project %s (parent=%s)", project_id, self._config.parent or "<none>")
        operation = await projects.create_project(
            project_id,
            parent=self._config.parent,
            display_name=project_id,
        )
        await self._waiter.wait(operation, fetch=projects.get_operation)
        logger.info("Created project %s", project_id)
        return True

    async def _setup_billing(self, *, project_id: str) -> bool:
        account = self._config.billing_account

        info = await self._billing.get_billing_info(project_id)
        if info.billing_account_name == account and info.billing_enabled:
            logger.info("Project %s already linked to %s", project_id, account)
            return False

        logger.info(
            "Linking project %s to %s (current=%r, enabled=%s)",
            project_id,
            account,
            info.billing_account_name,
            info.billing_enabled,
        )
        updated = await self._billing.update_billing_info(project_id, billing_account=account, enabled=True)
        if not updated.billing_enabled:
            raise BillingLinkError(f"Billing is still disabled after linking {project_id} to {account}")
        return True

    async def _setup_service(self, *, project_id: str, service_id: str) -> bool:
        states = await self._service_usage.get_service_states(project_id, [service_id])
        state = states.get(service_id)
        if state is not None and state.enabled:
            logger.info("Service %s already enabled on %s", service_id, project_id)
            return False

        logger.info("Enabling %s on %s", service_id, project_id)
        operation = await self._service_usage.enable_service(project_id, service_id)
        await self._wait_for_service_operation(operation)
        return True

    async def _setup_services(self, *, project_id: str, service_ids: Sequence[str]) -> list[str]:
        if not service_ids:
            return []

        states = await self._service_usage.get_service_states(project_id, service_ids)
        missing = []
        for service_id in service_ids:
            state = states.get(service_id)
            if (state is None or not state.enabled) and service_id not in missing:
                missing.append(service_id)

        if not missing:
            logger.info("All %d configured services already enabled on %s", len(service_ids), project_id)
            return []

        logger.info("Enabling %d services on %s: %s", len(missing), project_id, ", ".join(missing))
        operation = await self._service_usage.batch_enable(project_id, missing)
        await self._wait_for_service_operation(operation)
        return missing

    async def _wait_for_service_operation(self, operation: Operation) -> None:
        try:
            await self._waiter.wait(operation, fetch=self._service_usage.get_operation)
        except (OperationPollError, OperationFailed) as exc:
            raise ServiceEnableError(str(exc)) from exc

    async def _run_setup_commands(self, *, project_id: str) -> list[str]:
        executed: list[str] = []
        for template in self._config.setup_commands:
            command = render_setup_command(template, project_id)
            logger.info("Running setup command: %s", command)
            exit_code = await self._runner.run(command)
            executed.append(command)
            if exit_code != 0:
                raise SetupCommandError(
                    f"Setup command {command!r} exited with status {exit_code}",
                    command=command,
                    exit_code=exit_code,
                )
        return executed
