"""Deployment configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Deployment settings loaded from environment variables.

    Every value has a documented fallback, so a bare checkout deploys the
    ``dev`` environment with the ``default`` AWS profile in ``us-east-1``.
    See .env.example for the full list.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Identity
    aws_profile: str = "default"  # AWS_PROFILE
    default_aws_region: str = "us-east-1"  # DEFAULT_AWS_REGION

    # Invocation defaults (positional CLI arguments override these)
    default_environment: str = "dev"
    default_project_name: str = "twin"
    environments: list[str] = ["dev", "test", "prod"]

    # Production gets an extended variable file on top of the inline vars
    production_environment: str = "prod"
    production_var_file: str = "prod.tfvars"

    # Remote state backend
    state_bucket_prefix: str = "twin-terraform-state"
    state_key_template: str = "{environment}/terraform.tfstate"
    lock_table_name: str = "twin-terraform-locks"
    state_encrypt: bool = True

    # Repository layout (relative paths resolve against project_root)
    project_root: Path = Path(".")
    terraform_dir: str = "terraform"
    backend_dir: str = "backend"
    frontend_dir: str = "frontend"

    # Backend bundle, produced by an external build step
    artifact_path: str = "backend/lambda-deployment.zip"
    artifact_build_command: list[str] = ["uv", "run", "deploy.py"]

    # Frontend build
    frontend_build_dir: str = "out"
    frontend_env_file: str = ".env.production"
    public_api_url_key: str = "NEXT_PUBLIC_API_URL"

    # Publishing behaviour
    # CloudFront keeps serving cached assets after a publish unless this is set
    invalidate_cdn: bool = False
    smoke_check_path: str = ""  # e.g. "/health"; empty disables the probe
    smoke_check_timeout_seconds: float = 10.0

    # External tools
    terraform_binary: str = "terraform"
    aws_cli_binary: str = "aws"
    npm_binary: str = "npm"

    @property
    def terraform_path(self) -> Path:
        """Directory holding the Terraform stack."""
        return self.project_root / self.terraform_dir

    @property
    def backend_path(self) -> Path:
        """Directory the backend bundle is built from."""
        return self.project_root / self.backend_dir

    @property
    def frontend_path(self) -> Path:
        """Directory holding the frontend sources."""
        return self.project_root / self.frontend_dir

    @property
    def resolved_artifact_path(self) -> Path:
        """Absolute-or-root-relative location of the backend bundle."""
        return self.project_root / self.artifact_path

    def is_production(self, environment: str) -> bool:
        """Whether an environment gets the production variable file."""
        return environment == self.production_environment


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
