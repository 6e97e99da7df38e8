"""Typed values passed between pipeline stages."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class DeploymentTarget:
    """Resolved AWS identity the deployment runs as."""

    account_id: str
    caller_arn: str
    region: str
    profile: str


@dataclass(frozen=True)
class StateBackendConfig:
    """Terraform S3 backend settings for one pipeline run."""

    bucket: str
    key: str
    region: str
    dynamodb_table: str
    encrypt: bool = True

    def as_backend_config(self) -> dict[str, str]:
        """Key/value pairs for ``terraform init -backend-config``."""
        return {
            "bucket": self.bucket,
            "key": self.key,
            "region": self.region,
            "dynamodb_table": self.dynamodb_table,
            "encrypt": "true" if self.encrypt else "false",
        }


@dataclass(frozen=True)
class ApplyPlan:
    """Variable files and inline variables for apply/destroy."""

    environment: str
    var_files: tuple[str, ...] = ()
    variables: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ApplyResult:
    """Values read from the applied stack."""

    api_url: str
    frontend_bucket: str
    cloudfront_url: str
    custom_domain_url: str | None = None
    distribution_id: str | None = None


@dataclass(frozen=True)
class ArtifactPackage:
    """Backend bundle produced by the external build step."""

    path: Path
    size_bytes: int


@dataclass(frozen=True)
class FrontendBuild:
    """Generated config file plus the build output directory."""

    env_file: Path
    output_dir: Path


@dataclass
class PublishSummary:
    """Counts from a mirror publish."""

    uploaded: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    unchanged: int = 0
    invalidation_id: str | None = None
