from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _GcpModel(BaseModel):
    # REST payloads are camelCase; unknown fields are ignored.
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Project(_GcpModel):
    project_id: str = Field(..., alias="projectId", description="Globally unique project id")
    name: Optional[str] = Field(default=None, description="Resource name, e.g. projects/123456")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    parent: Optional[str] = None
    state: Optional[str] = None


class OperationStatus(_GcpModel):
    code: int = 0
    message: str = ""
    details: list[dict[str, Any]] = Field(default_factory=list)


class Operation(_GcpModel):
    name: str = Field(default="", description="Operation resource name, e.g. operations/cp.123")
    done: bool = False
    error: Optional[OperationStatus] = None
    response: Optional[dict[str, Any]] = None


class BillingInfo(_GcpModel):
    billing_account_name: str = Field(default="", alias="billingAccountName")
    billing_enabled: bool = Field(default=False, alias="billingEnabled")


class ServiceState(_GcpModel):
    """Service Usage entry for one service on one project."""

    name: str = Field(default="", description="projects/<number>/services/<service>")
    state: str = Field(default="STATE_UNSPECIFIED", description="ENABLED or DISABLED")

    @property
    def service_id(self) -> str:
        return self.name.rsplit("/", 1)[-1]

    @property
    def enabled(self) -> bool:
        return self.state.upper() == "ENABLED"


class ServiceStateList(_GcpModel):
    """Body of ``services:batchGet``."""

    services: list[ServiceState] = Field(default_factory=list)
