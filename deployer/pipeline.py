"""Deployment and teardown pipelines.

Stages run strictly in order and each one's output feeds the next. Any
stage failure raises a :class:`~deployer.errors.DeploymentError` and the
remaining stages never run.
"""

import logging
from collections.abc import Callable
from typing import TextIO

import boto3

from common.config import Settings
from deployer.artifact import ArtifactBuilder
from deployer.credentials import CredentialGate
from deployer.errors import ConfigurationError
from deployer.frontend import FrontendPublisher
from deployer.models import ApplyResult, DeploymentTarget, StateBackendConfig
from deployer.outputs import OutputExtractor
from deployer.planner import ApplyPlanner
from deployer.process import CommandResult, run_command
from deployer.reporter import OutputReporter
from deployer.state_backend import StateBackendResolver
from deployer.terraform import TerraformCLI
from deployer.workspace import WorkspaceManager

logger = logging.getLogger(__name__)


class DeploymentPipeline:
    """Deploys (or tears down) one project in one environment."""

    def __init__(
        self,
        settings: Settings,
        environment: str | None = None,
        project_name: str | None = None,
        *,
        gate: CredentialGate | None = None,
        runner: Callable[..., CommandResult] = run_command,
        stream: TextIO | None = None,
    ):
        self.settings = settings
        self.environment = environment or settings.default_environment
        self.project_name = project_name or settings.default_project_name

        if self.environment not in settings.environments:
            raise ConfigurationError(
                f"Unknown environment '{self.environment}'",
                remedy=f"Use one of: {', '.join(settings.environments)}.",
            )

        self.gate = gate or CredentialGate(
            settings.aws_profile,
            settings.default_aws_region,
            aws_cli=settings.aws_cli_binary,
            runner=runner,
        )
        self._run = runner
        self._stream = stream

    def _terraform(self, target: DeploymentTarget) -> TerraformCLI:
        return TerraformCLI(
            self.settings.terraform_path,
            target.profile,
            binary=self.settings.terraform_binary,
            runner=self._run,
        )

    def _resolve_backend(
        self, session: boto3.Session, target: DeploymentTarget
    ) -> StateBackendConfig:
        resolver = StateBackendResolver(self.settings, session)
        return resolver.resolve(self.environment, target)

    def deploy(self) -> ApplyResult:
        """Run every deployment stage and return the stack outputs."""
        logger.info(f"Deploying {self.project_name} to {self.environment}...")

        session, target = self.gate.verify()

        ArtifactBuilder(self.settings, target.profile, runner=self._run).build()

        backend = self._resolve_backend(session, target)

        terraform = self._terraform(target)
        WorkspaceManager(terraform).prepare(self.environment, backend)

        planner = ApplyPlanner(self.settings, terraform)
        planner.apply(planner.build_plan(self.environment, self.project_name))

        result = OutputExtractor(terraform).extract()

        FrontendPublisher(self.settings, session, runner=self._run).publish(result)

        OutputReporter(
            self._stream,
            smoke_check_path=self.settings.smoke_check_path,
            timeout_seconds=self.settings.smoke_check_timeout_seconds,
        ).report(result)
        return result

    def destroy(self) -> bool:
        """Empty the frontend bucket and destroy the environment's stack.

        Returns:
            False if the environment has no workspace (nothing to destroy).
        """
        logger.info(f"Destroying {self.project_name} in {self.environment}...")

        session, target = self.gate.verify()
        backend = self._resolve_backend(session, target)

        terraform = self._terraform(target)
        workspaces = WorkspaceManager(terraform)
        workspaces.initialize(backend)
        if not workspaces.exists(self.environment):
            logger.info(f"No workspace for {self.environment}; nothing to destroy")
            return False
        workspaces.select(self.environment)

        bucket = OutputExtractor(terraform).frontend_bucket()
        if bucket:
            FrontendPublisher(self.settings, session, runner=self._run).empty_bucket(bucket)

        planner = ApplyPlanner(self.settings, terraform)
        planner.destroy(planner.build_plan(self.environment, self.project_name))

        logger.info(f"{self.environment} environment destroyed")
        return True
