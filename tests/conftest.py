"""Pytest configuration and fixtures.

This module sets up test environment variables BEFORE any deployer
modules are imported, so Settings never picks up the operator's real
AWS profile or a stray .env file.
"""

import os

os.environ.setdefault("AWS_PROFILE", "test-profile")
os.environ.setdefault("DEFAULT_AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_EC2_METADATA_DISABLED", "true")

from collections.abc import Callable, Sequence
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from common.config import Settings
from deployer.models import DeploymentTarget
from deployer.process import CommandResult

ACCOUNT_ID = "123456789012"


def pytest_addoption(parser):
    """Add command line options for the smoke tests."""
    parser.addoption(
        "--cdn-url",
        action="store",
        default=os.getenv("CLOUDFRONT_URL", ""),
        help="CloudFront URL of the deployed frontend",
    )
    parser.addoption(
        "--api-url",
        action="store",
        default=os.getenv("API_GATEWAY_URL", ""),
        help="API Gateway URL of the deployed backend",
    )


Handler = Callable[[list[str]], CommandResult | None]


class FakeRunner:
    """Stands in for ``run_command``.

    Commands succeed with empty output unless a handler registered for a
    matching prefix returns something else. Every call is recorded.
    """

    def __init__(self):
        self.calls: list[tuple[list[str], dict]] = []
        self._handlers: list[tuple[tuple[str, ...], Handler]] = []

    def on(
        self,
        *prefix: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        handler: Handler | None = None,
    ) -> None:
        """Register a response for commands starting with ``prefix``."""
        if handler is None:

            def handler(command: list[str]) -> CommandResult:
                return CommandResult(" ".join(command), returncode, stdout, stderr)

        self._handlers.append((tuple(prefix), handler))

    def __call__(self, command: Sequence[str], **kwargs) -> CommandResult:
        command = list(command)
        self.calls.append((command, kwargs))
        matches = [
            (prefix, handler)
            for prefix, handler in self._handlers
            if tuple(command[: len(prefix)]) == prefix
        ]
        if matches:
            _, handler = max(matches, key=lambda m: len(m[0]))
            result = handler(command)
            if result is None:
                return CommandResult(" ".join(command), 0)
            if not isinstance(result, CommandResult):
                raise TypeError(f"Handler for {command} returned {result!r}, not a CommandResult")
            return result
        return CommandResult(" ".join(command), 0)

    @property
    def commands(self) -> list[list[str]]:
        return [command for command, _ in self.calls]

    def ran(self, *prefix: str) -> bool:
        return any(tuple(c[: len(prefix)]) == prefix for c in self.commands)


class TerraformWorkspaces:
    """Stateful ``terraform workspace`` behaviour for a FakeRunner."""

    def __init__(self, *existing: str):
        self.names = ["default", *existing]
        self.current = "default"

    def install(self, runner: FakeRunner) -> None:
        runner.on("terraform", "workspace", "list", handler=self.show)
        runner.on("terraform", "workspace", "new", handler=self.new)
        runner.on("terraform", "workspace", "select", handler=self.select)

    def show(self, command: list[str]) -> CommandResult:
        lines = [f"* {n}" if n == self.current else f"  {n}" for n in self.names]
        return CommandResult(" ".join(command), 0, "\n".join(lines) + "\n")

    def new(self, command: list[str]) -> CommandResult:
        name = command[-1]
        if name in self.names:
            return CommandResult(
                " ".join(command), 1, stderr=f'Workspace "{name}" already exists'
            )
        self.names.append(name)
        self.current = name
        return CommandResult(" ".join(command), 0, f'Created and switched to workspace "{name}"!')

    def select(self, command: list[str]) -> CommandResult:
        name = command[-1]
        if name not in self.names:
            return CommandResult(
                " ".join(command), 1, stderr=f'Workspace "{name}" doesn\'t exist.'
            )
        self.current = name
        return CommandResult(" ".join(command), 0)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """A checkout with terraform/, backend/ and frontend/ directories."""
    for name in ("terraform", "backend", "frontend"):
        (tmp_path / name).mkdir()
    return tmp_path


@pytest.fixture
def settings(project_root: Path) -> Settings:
    """Settings rooted at the temporary checkout."""
    return Settings(
        _env_file=None,
        aws_profile="test-profile",
        default_aws_region="us-east-1",
        project_root=project_root,
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def target() -> DeploymentTarget:
    return DeploymentTarget(
        account_id=ACCOUNT_ID,
        caller_arn=f"arn:aws:sts::{ACCOUNT_ID}:assumed-role/Admin/dev",
        region="us-east-1",
        profile="test-profile",
    )


@pytest.fixture
def aws_clients() -> dict[str, MagicMock]:
    """Mock boto3 clients keyed by service name."""
    s3 = MagicMock(name="s3")
    s3.get_paginator.return_value.paginate.return_value = [{}]
    s3.get_bucket_location.return_value = {"LocationConstraint": None}
    s3.delete_objects.return_value = {}
    cloudfront = MagicMock(name="cloudfront")
    cloudfront.create_invalidation.return_value = {"Invalidation": {"Id": "I2J0I21PCUYOIK"}}
    sts = MagicMock(name="sts")
    sts.get_caller_identity.return_value = {
        "Account": ACCOUNT_ID,
        "Arn": f"arn:aws:sts::{ACCOUNT_ID}:assumed-role/Admin/dev",
    }
    return {"s3": s3, "cloudfront": cloudfront, "sts": sts}


@pytest.fixture
def session(aws_clients: dict[str, MagicMock]) -> MagicMock:
    """A boto3.Session mock whose client() returns ``aws_clients``."""
    mock = MagicMock(name="session")
    mock.client.side_effect = lambda service, **kwargs: aws_clients[service]
    return mock


@pytest.fixture
def workspaces(runner: FakeRunner) -> Callable[..., TerraformWorkspaces]:
    """Factory installing stateful workspace handling on ``runner``."""

    def make(*existing: str) -> TerraformWorkspaces:
        state = TerraformWorkspaces(*existing)
        state.install(runner)
        return state

    return make
