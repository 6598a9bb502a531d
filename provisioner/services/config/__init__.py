"""Configuration package (Facade).

Re-exports the public config types so callers import from a single, stable path:

	from provisioner.services.config import ProvisioningConfig, GcpConfig
"""

from provisioner.services.config.gcp_config import GcpConfig
from provisioner.services.config.provisioning_config import ProvisioningConfig

__all__ = ["GcpConfig", "ProvisioningConfig"]
