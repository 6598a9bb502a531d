from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from provisioner.models.gcp import Operation, Project
from provisioner.services.errors import ProvisionerError
from provisioner.services.gcp_client import GcpHttpClient, is_absent, parse_model, raise_for_status


logger = logging.getLogger(__name__)


class ProjectLookupError(ProvisionerError):
    pass


class ProjectCreateError(ProvisionerError):
    pass


class ProjectService:
    """Cloud Resource Manager v3 calls for a single project."""

    def __init__(self, client: GcpHttpClient) -> None:
        self._client = client
        self._base_url = f"{client.config.resource_manager_endpoint}/v3"

    @staticmethod
    def _validate_project_id(project_id: str) -> None:
        if not project_id or not project_id.strip():
            raise ValueError("project_id must be provided")

    async def get_project(self, project_id: str) -> Optional[Project]:
        """Return the project, or None if it doesn't exist or isn't visible to us."""

        self._validate_project_id(project_id)
        action = f"Looking up project {project_id}"
        try:
            status, payload = await self._client.request(
                method="GET",
                url=f"{self._base_url}/projects/{quote(project_id, safe='')}",
            )
            if is_absent(status):
                logger.debug("Project %s lookup returned HTTP %s; treating as absent", project_id, status)
                return None
            raise_for_status(status, payload, action=action)
            return parse_model(Project, payload, action=action)
        except ProvisionerError as exc:
            raise ProjectLookupError(f"Failed looking up project {project_id}: {exc}") from exc

    async def create_project(self, project_id: str, *, parent: str, display_name: str) -> Operation:
        self._validate_project_id(project_id)

        body: dict[str, str] = {"projectId": project_id, "displayName": display_name}
        if parent:
            body["parent"] = parent

        action = f"Creating project {project_id}"
        try:
            status, payload = await self._client.request(method="POST", url=f"{self._base_url}/projects", body=body)
            raise_for_status(status, payload, action=action)
            return parse_model(Operation, payload, action=action)
        except ProvisionerError as exc:
            raise ProjectCreateError(str(exc)) from exc

    async def get_operation(self, name: str) -> Operation:
        action = f"Getting operation {name}"
        status, payload = await self._client.request(method="GET", url=f"{self._base_url}/{name}")
        raise_for_status(status, payload, action=action)
        return parse_model(Operation, payload, action=action)
