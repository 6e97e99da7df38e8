"""Backend bundle build step.

The bundle itself is produced by the backend's own build script; this
module only runs it and checks that the bundle landed where Terraform
expects it.
"""

import logging
from collections.abc import Callable

from common.config import Settings
from deployer.errors import ArtifactError
from deployer.models import ArtifactPackage
from deployer.process import CommandResult, command_env, run_command

logger = logging.getLogger(__name__)


class ArtifactBuilder:
    """Runs the configured backend build command and locates the bundle."""

    def __init__(
        self,
        settings: Settings,
        profile: str,
        *,
        runner: Callable[..., CommandResult] = run_command,
    ):
        self.settings = settings
        self.profile = profile
        self._run = runner

    def build(self) -> ArtifactPackage:
        """Build the bundle and return it.

        Raises:
            ArtifactError: If the build fails or produces no bundle.
        """
        logger.info("Building Lambda package...")
        result = self._run(
            self.settings.artifact_build_command,
            cwd=self.settings.backend_path,
            env=command_env(self.profile),
            capture=False,
        )
        if not result.ok:
            raise ArtifactError(
                f"Backend build failed (exit {result.returncode})",
                remedy=f"Run '{result.command}' in {self.settings.backend_path} to see the error.",
                detail=result.diagnostic,
            )

        path = self.settings.resolved_artifact_path
        if not path.is_file():
            raise ArtifactError(
                f"Backend build reported success but {path} does not exist",
                remedy="Check ARTIFACT_PATH matches what the backend build writes.",
            )

        package = ArtifactPackage(path=path, size_bytes=path.stat().st_size)
        logger.info(f"Lambda package ready: {package.path} ({package.size_bytes} bytes)")
        return package
