"""Deployment pipeline for the serverless backend, Terraform stack and static frontend.

Stages, in order:
- Credential check (STS, one SSO renewal)
- Backend bundle build
- Remote state backend discovery
- Per-environment Terraform workspace
- Auto-approved apply
- Stack output extraction
- Frontend build and mirror publish
- Endpoint report
"""

from deployer.errors import (
    ApplyError,
    ArtifactError,
    BackendResolutionError,
    BuildError,
    ConfigurationError,
    CredentialError,
    DeploymentError,
    NamespaceConflictError,
    OutputMissingError,
    PublishError,
)
from deployer.models import ApplyResult, DeploymentTarget, StateBackendConfig
from deployer.pipeline import DeploymentPipeline

__all__ = [
    "DeploymentPipeline",
    "ApplyResult",
    "DeploymentTarget",
    "StateBackendConfig",
    "DeploymentError",
    "ConfigurationError",
    "CredentialError",
    "ArtifactError",
    "BackendResolutionError",
    "NamespaceConflictError",
    "ApplyError",
    "OutputMissingError",
    "BuildError",
    "PublishError",
]
