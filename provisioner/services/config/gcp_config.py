from __future__ import annotations

import os
from dataclasses import dataclass
from typing import ClassVar

from provisioner.services.errors import ConfigError


@dataclass(frozen=True)
class GcpConfig:
    """Runtime configuration for the Google Cloud REST APIs.

    Endpoints are base URLs without a trailing slash, e.g.
    "https://cloudresourcemanager.googleapis.com".
    """

    resource_manager_endpoint: str = "https://cloudresourcemanager.googleapis.com"
    billing_endpoint: str = "https://cloudbilling.googleapis.com"
    service_usage_endpoint: str = "https://serviceusage.googleapis.com"
    _DEFAULT_TIMEOUT_SECONDS: ClassVar[float] = 30.0
    timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS

    @staticmethod
    def from_env(
        *,
        resource_manager_env: str = "GCP_RESOURCE_MANAGER_ENDPOINT",
        billing_env: str = "GCP_BILLING_ENDPOINT",
        service_usage_env: str = "GCP_SERVICE_USAGE_ENDPOINT",
        timeout_env: str = "GCP_HTTP_TIMEOUT_SECONDS",
    ) -> "GcpConfig":
        defaults = GcpConfig()

        timeout_raw = os.getenv(timeout_env)
        timeout_seconds = GcpConfig._DEFAULT_TIMEOUT_SECONDS
        if timeout_raw:
            try:
                timeout_seconds = float(timeout_raw)
            except ValueError as exc:
                raise ConfigError(f"Invalid {timeout_env}; must be a number") from exc
            if timeout_seconds <= 0:
                raise ConfigError(f"Invalid {timeout_env}; must be positive")

        return GcpConfig(
            resource_manager_endpoint=(os.getenv(resource_manager_env) or defaults.resource_manager_endpoint).rstrip("/"),
            billing_endpoint=(os.getenv(billing_env) or defaults.billing_endpoint).rstrip("/"),
            service_usage_endpoint=(os.getenv(service_usage_env) or defaults.service_usage_endpoint).rstrip("/"),
            timeout_seconds=timeout_seconds,
        )
