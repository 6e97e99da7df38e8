"""Variable selection and auto-approved apply/destroy."""

import logging

from common.config import Settings
from deployer.errors import ApplyError, ConfigurationError
from deployer.models import ApplyPlan
from deployer.terraform import TerraformCLI

logger = logging.getLogger(__name__)


class ApplyPlanner:
    """Chooses variables per environment and runs terraform apply.

    Apply is auto-approved: nothing gates resource changes once the
    pipeline reaches this stage. Failures are not retried or rolled back.
    """

    def __init__(self, settings: Settings, terraform: TerraformCLI):
        self.settings = settings
        self.terraform = terraform

    def build_plan(self, environment: str, project_name: str) -> ApplyPlan:
        """Production adds the extended var file; every environment gets inline vars.

        Raises:
            ConfigurationError: If the production var file is missing.
        """
        var_files: tuple[str, ...] = ()
        if self.settings.is_production(environment):
            var_file = self.settings.production_var_file
            if not (self.settings.terraform_path / var_file).is_file():
                raise ConfigurationError(
                    f"{var_file} not found in {self.settings.terraform_path}",
                    remedy=f"Create {var_file} before deploying {environment}.",
                )
            var_files = (var_file,)

        return ApplyPlan(
            environment=environment,
            var_files=var_files,
            variables={"project_name": project_name, "environment": environment},
        )

    def apply(self, plan: ApplyPlan) -> None:
        """Raises ApplyError carrying terraform's own diagnostic."""
        logger.info(
            "Applying Terraform...",
            extra={"environment": plan.environment, "var_files": list(plan.var_files)},
        )
        result = self.terraform.apply(plan)
        if not result.ok:
            raise ApplyError(
                f"terraform apply failed (exit {result.returncode})",
                remedy="Fix the error reported by Terraform above and re-run the deployment.",
                detail=result.diagnostic,
            )

    def destroy(self, plan: ApplyPlan) -> None:
        logger.info("Destroying Terraform resources...", extra={"environment": plan.environment})
        result = self.terraform.destroy(plan)
        if not result.ok:
            raise ApplyError(
                f"terraform destroy failed (exit {result.returncode})",
                remedy="Fix the error reported by Terraform above and re-run the teardown.",
                detail=result.diagnostic,
            )
