"""Terraform CLI adapter.

All Terraform invocations and all parsing of Terraform output live here.
Callers get Python values or a :class:`CommandResult`, never raw text.
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from deployer.errors import ApplyError
from deployer.models import ApplyPlan, StateBackendConfig
from deployer.process import CommandResult, command_env, run_command

logger = logging.getLogger(__name__)


def parse_workspace_list(text: str) -> list[str]:
    """Parse ``terraform workspace list`` output into workspace names.

    The current workspace is prefixed with ``*``.
    """
    names = []
    for line in text.splitlines():
        name = line.strip().lstrip("*").strip()
        if name:
            names.append(name)
    return names


def parse_outputs(text: str) -> dict[str, Any]:
    """Parse ``terraform output -json`` into ``{name: value}``."""
    try:
        raw = json.loads(text or "{}")
    except json.JSONDecodeError as e:
        raise ApplyError(f"Unreadable terraform output: {e}") from e
    return {name: entry.get("value") for name, entry in raw.items() if isinstance(entry, dict)}


def plan_arguments(plan: ApplyPlan) -> list[str]:
    """``-var-file`` and ``-var`` flags for a plan, var files first."""
    args = [f"-var-file={var_file}" for var_file in plan.var_files]
    args.extend(f"-var={key}={value}" for key, value in plan.variables.items())
    return args


class TerraformCLI:
    """Runs terraform in one stack directory under one AWS profile."""

    def __init__(
        self,
        working_dir: Path,
        profile: str,
        *,
        binary: str = "terraform",
        runner: Callable[..., CommandResult] = run_command,
    ):
        self.working_dir = working_dir
        self.profile = profile
        self.binary = binary
        self._run = runner

    def _terraform(self, *args: str, capture: bool = True) -> CommandResult:
        return self._run(
            [self.binary, *args],
            cwd=self.working_dir,
            env=command_env(self.profile, {"TF_IN_AUTOMATION": "1"}),
            capture=capture,
        )

    def init(self, backend: StateBackendConfig) -> None:
        """Initialize the S3 backend.

        Raises:
            ApplyError: If ``terraform init`` fails.
        """
        args = ["init", "-input=false", "-reconfigure"]
        args.extend(
            f"-backend-config={key}={value}"
            for key, value in backend.as_backend_config().items()
        )
        result = self._terraform(*args)
        if not result.ok:
            raise ApplyError(
                "terraform init failed",
                remedy="Check that the state bucket and lock table exist and are reachable.",
                detail=result.diagnostic,
            )

    def list_workspaces(self) -> list[str]:
        result = self._terraform("workspace", "list")
        if not result.ok:
            raise ApplyError("terraform workspace list failed", detail=result.diagnostic)
        return parse_workspace_list(result.stdout)

    def new_workspace(self, name: str) -> CommandResult:
        return self._terraform("workspace", "new", name)

    def select_workspace(self, name: str) -> CommandResult:
        return self._terraform("workspace", "select", name)

    def apply(self, plan: ApplyPlan) -> CommandResult:
        """Auto-approved, non-interactive apply. Output streams to the terminal."""
        return self._terraform(
            "apply", "-input=false", *plan_arguments(plan), "-auto-approve", capture=False
        )

    def destroy(self, plan: ApplyPlan) -> CommandResult:
        """Auto-approved, non-interactive destroy. Output streams to the terminal."""
        return self._terraform(
            "destroy", "-input=false", *plan_arguments(plan), "-auto-approve", capture=False
        )

    def outputs(self) -> dict[str, Any]:
        """All stack outputs as ``{name: value}``.

        Raises:
            ApplyError: If outputs cannot be read.
        """
        result = self._terraform("output", "-json")
        if not result.ok:
            raise ApplyError("terraform output failed", detail=result.diagnostic)
        return parse_outputs(result.stdout)
