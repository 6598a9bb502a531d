from __future__ import annotations

from urllib.parse import quote

from provisioner.models.gcp import BillingInfo
from provisioner.services.errors import ProvisionerError
from provisioner.services.gcp_client import GcpHttpClient, parse_model, raise_for_status


class BillingLinkError(ProvisionerError):
    pass


class BillingService:
    """Cloud Billing v1 calls for linking a project to a billing account."""

    def __init__(self, client: GcpHttpClient) -> None:
        self._client = client
        self._base_url = f"{client.config.billing_endpoint}/v1"

    def _billing_info_url(self, project_id: str) -> str:
        return f"{self._base_url}/projects/{quote(project_id, safe='')}/billingInfo"

    async def get_billing_info(self, project_id: str) -> BillingInfo:
        action = f"Getting billing info for {project_id}"
        try:
            status, payload = await self._client.request(method="GET", url=self._billing_info_url(project_id))
            raise_for_status(status, payload, action=action)
            return parse_model(BillingInfo, payload, action=action)
        except ProvisionerError as exc:
            raise BillingLinkError(str(exc)) from exc

    async def update_billing_info(self, project_id: str, *, billing_account: str, enabled: bool = True) -> BillingInfo:
        action = f"Linking {project_id} to {billing_account}"
        body = {"billingAccountName": billing_account, "billingEnabled": enabled}
        try:
            status, payload = await self._client.request(
                method="PUT",
                url=self._billing_info_url(project_id),
                body=body,
            )
            raise_for_status(status, payload, action=action)
            return parse_model(BillingInfo, payload, action=action)
        except ProvisionerError as exc:
            raise BillingLinkError(str(exc)) from exc
