"""Per-environment Terraform workspace handling."""

import logging

from deployer.errors import ApplyError, NamespaceConflictError
from deployer.models import StateBackendConfig
from deployer.terraform import TerraformCLI

logger = logging.getLogger(__name__)


class WorkspaceManager:
    """Connects to the remote state and selects the environment's workspace."""

    def __init__(self, terraform: TerraformCLI):
        self.terraform = terraform

    def initialize(self, backend: StateBackendConfig) -> None:
        logger.info("Initializing Terraform with S3 backend...")
        self.terraform.init(backend)

    def exists(self, environment: str) -> bool:
        return environment in self.terraform.list_workspaces()

    def ensure(self, environment: str) -> bool:
        """Create the workspace if absent, otherwise select it.

        Returns:
            True if the workspace was created by this call.

        Raises:
            NamespaceConflictError: If creation lost a race with another run.
            ApplyError: If selection or creation fails for any other reason.
        """
        if self.exists(environment):
            self.select(environment)
            return False

        logger.info(f"Creating workspace {environment}")
        result = self.terraform.new_workspace(environment)
        if result.ok:
            return True
        if "already exists" in result.diagnostic:
            raise NamespaceConflictError(
                f"Workspace {environment} was created by another run", detail=result.diagnostic
            )
        raise ApplyError(f"Cannot create workspace {environment}", detail=result.diagnostic)

    def select(self, environment: str) -> None:
        logger.info(f"Selecting workspace {environment}")
        result = self.terraform.select_workspace(environment)
        if not result.ok:
            raise ApplyError(f"Cannot select workspace {environment}", detail=result.diagnostic)

    def prepare(self, environment: str, backend: StateBackendConfig) -> bool:
        """Initialize the backend, then ensure the workspace."""
        self.initialize(backend)
        return self.ensure(environment)
