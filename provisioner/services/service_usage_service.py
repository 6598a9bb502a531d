from __future__ import annotations

from typing import Sequence
from urllib.parse import quote

from provisioner.models.gcp import Operation, ServiceState, ServiceStateList
from provisioner.services.errors import ProvisionerError
from provisioner.services.gcp_client import GcpHttpClient, parse_model, raise_for_status


class ServiceEnableError(ProvisionerError):
    pass


class ServiceUsageService:
    """Service Usage v1 calls for enabling platform services on a project."""

    def __init__(self, client: GcpHttpClient) -> None:
        self._client = client
        self._base_url = f"{client.config.service_usage_endpoint}/v1"

    def _project_url(self, project_id: str) -> str:
        return f"{self._base_url}/projects/{quote(project_id, safe='')}"

    async def get_service_states(self, project_id: str, service_ids: Sequence[str]) -> dict[str, ServiceState]:
        """Return the current state of each requested service, keyed by service id."""

        if not service_ids:
            return {}

        params = [("names", f"projects/{project_id}/services/{service_id}") for service_id in service_ids]
        action = f"Getting service states for {project_id}"
        try:
            status, payload = await self._client.request(
                method="GET",
                url=f"{self._project_url(project_id)}/services:batchGet",
                params=params,
            )
            raise_for_status(status, payload, action=action)
            states = parse_model(ServiceStateList, payload, action=action)
        except ProvisionerError as exc:
            raise ServiceEnableError(str(exc)) from exc

        return {state.service_id: state for state in states.services}

    async def enable_service(self, project_id: str, service_id: str) -> Operation:
        action = f"Enabling {service_id} on {project_id}"
        try:
            status, payload = await self._client.request(
                method="POST",
                url=f"{self._project_url(project_id)}/services/{quote(service_id, safe='')}:enable",
                body={},
            )
            raise_for_status(status, payload, action=action)
            return parse_model(Operation, payload, action=action)
        except ProvisionerError as exc:
            raise ServiceEnableError(str(exc)) from exc

    async def batch_enable(self, project_id: str, service_ids: Sequence[str]) -> Operation:
        action = f"Batch enabling {len(service_ids)} services on {project_id}"
        try:
            status, payload = await self._client.request(
                method="POST",
                url=f"{self._project_url(project_id)}/services:batchEnable",
                body={"serviceIds": list(service_ids)},
            )
            raise_for_status(status, payload, action=action)
            return parse_model(Operation, payload, action=action)
        except ProvisionerError as exc:
            raise ServiceEnableError(str(exc)) from exc

    async def get_operation(self, name: str) -> Operation:
        action = f"Getting operation {name}"
        status, payload = await self._client.request(method="GET", url=f"{self._base_url}/{name}")
        raise_for_status(status, payload, action=action)
        return parse_model(Operation, payload, action=action)
