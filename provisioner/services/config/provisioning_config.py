from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import yaml

from provisioner.services.errors import ConfigError


_BILLING_ACCOUNT_PREFIX = "billingAccounts/"


def normalize_billing_account(value: str) -> str:
    """Return the billing account as a resource name (``billingAccounts/<id>``).

    Accepts either the bare id ("012345-567890-ABCDEF") or the full resource name.
    An empty value stays empty.
    """

    value = value.strip()
    if not value or value.startswith(_BILLING_ACCOUNT_PREFIX):
        return value
    return f"{_BILLING_ACCOUNT_PREFIX}{value}"


def _string_field(raw: dict[str, Any], key: str, *, path: Path) -> str:
    value = raw.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"Invalid config {str(path)!r}: {key!r} must be a string")
    return value.strip()


def _string_list_field(raw: dict[str, Any], key: str, *, path: Path) -> tuple[str, ...]:
    value = raw.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"Invalid config {str(path)!r}: {key!r} must be a list of strings")
    return tuple(value)


@dataclass(frozen=True)
class ProvisioningConfig:
    """Declarative description of the project to provision.

    Loaded once per run from YAML:

        namePattern: "dev-${env.USER}-${today}"
        parent: "folders/1234567890"
        billingAccount: "012345-567890-ABCDEF"
        services:
          - compute.googleapis.com
        setupCommands:
          - gcloud config set project ${PROJECT_ID}
    """

    name_pattern: str
    parent: str = ""
    billing_account: str = ""
    services: tuple[str, ...] = field(default_factory=tuple)
    setup_commands: tuple[str, ...] = field(default_factory=tuple)

    @staticmethod
    def from_dict(raw: Any, *, path: Union[str, Path] = "<config>") -> "ProvisioningConfig":
        path = Path(path)
        if not isinstance(raw, dict):
            raise ConfigError(f"Invalid config {str(path)!r}: expected a mapping at the top level")

        name_pattern = _string_field(raw, "namePattern", path=path)
        if not name_pattern:
            raise ConfigError(f"Invalid config {str(path)!r}: 'namePattern' is required")

        return ProvisioningConfig(
            name_pattern=name_pattern,
            parent=_string_field(raw, "parent", path=path),
            billing_account=normalize_billing_account(_string_field(raw, "billingAccount", path=path)),
            services=_string_list_field(raw, "services", path=path),
            setup_commands=_string_list_field(raw, "setupCommands", path=path),
        )

    @staticmethod
    def from_yaml(path: Union[str, Path]) -> "ProvisioningConfig":
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Error reading config file {str(path)!r}: {exc}") from exc

        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Error parsing YAML from {str(path)!r}: {exc}") from exc

        return ProvisioningConfig.from_dict(raw, path=path)
