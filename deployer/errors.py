"""Deployment pipeline exceptions.

Each stage raises its own subclass of :class:`DeploymentError`. The CLI
catches the base class, prints the stage, message and remedy, and exits
non-zero.
"""


class DeploymentError(Exception):
    """Base exception for a failed pipeline stage."""

    stage = "Deployment"
    remedy = ""

    def __init__(self, message: str, *, remedy: str | None = None, detail: str = ""):
        super().__init__(message)
        if remedy is not None:
            self.remedy = remedy
        self.detail = detail


class ConfigurationError(DeploymentError):
    """Invocation or settings cannot describe a valid deployment."""

    stage = "Configuration"


class CredentialError(DeploymentError):
    """Identity check and the single SSO renewal both failed."""

    stage = "Credential check"


class ArtifactError(DeploymentError):
    """Backend bundle build failed or the bundle is missing."""

    stage = "Backend build"


class BackendResolutionError(DeploymentError):
    """State bucket location could not be probed.

    Recovered inside the resolver by falling back to the default region.
    """

    stage = "State backend"


class NamespaceConflictError(DeploymentError):
    """Workspace creation raced with another invocation."""

    stage = "Workspace"
    remedy = "Another deployment created the workspace concurrently; re-run the deployment."


class ApplyError(DeploymentError):
    """Terraform init, apply or destroy failed."""

    stage = "Terraform"


class OutputMissingError(DeploymentError):
    """A required stack output is absent after a successful apply."""

    stage = "Stack outputs"
    remedy = "Check that the Terraform stack still declares the expected outputs."


class BuildError(DeploymentError):
    """Frontend build failed."""

    stage = "Frontend build"


class PublishError(DeploymentError):
    """Mirroring the frontend build to S3 failed."""

    stage = "Frontend publish"
