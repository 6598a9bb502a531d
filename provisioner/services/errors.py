from __future__ import annotations

from typing import Optional


class ProvisionerError(RuntimeError):
    """Base class for every error that aborts a provisioning run.

    The orchestrator annotates errors with the stage they were raised in and the
    project identifier being provisioned, so the top level can report them
    without knowing where they came from.
    """

    stage: Optional[str] = None
    project_id: Optional[str] = None

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage and self.project_id:
            return f"{self.stage} failed for project {self.project_id}: {message}"
        if self.stage:
            return f"{self.stage} failed: {message}"
        return message


class ConfigError(ProvisionerError):
    pass
