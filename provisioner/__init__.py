"""Daily GCP project provisioner."""

__version__ = "0.1.0"
