"""Unit tests for configuration."""

import os
from pathlib import Path
from unittest.mock import patch

from common.config import Settings, get_settings


def test_settings_loads_from_env_vars():
    """Test that settings load correctly from environment variables."""
    env_vars = {
        "AWS_PROFILE": "jackson",
        "DEFAULT_AWS_REGION": "eu-west-2",
        "DEFAULT_ENVIRONMENT": "test",
        "ENVIRONMENTS": '["dev", "test", "staging", "prod"]',
        "STATE_BUCKET_PREFIX": "acme-terraform-state",
        "LOCK_TABLE_NAME": "acme-terraform-locks",
        "INVALIDATE_CDN": "true",
        "ARTIFACT_BUILD_COMMAND": '["make", "bundle"]',
        "PROJECT_ROOT": "/srv/checkout",
    }
    with patch.dict(os.environ, env_vars, clear=True):
        settings = Settings(_env_file=None)
        assert settings.aws_profile == "jackson"
        assert settings.default_aws_region == "eu-west-2"
        assert settings.default_environment == "test"
        assert settings.environments == ["dev", "test", "staging", "prod"]
        assert settings.state_bucket_prefix == "acme-terraform-state"
        assert settings.lock_table_name == "acme-terraform-locks"
        assert settings.invalidate_cdn is True
        assert settings.artifact_build_command == ["make", "bundle"]
        assert settings.project_root == Path("/srv/checkout")


def test_settings_has_documented_fallbacks():
    """Test that settings work with defaults when env vars are empty."""
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)
        assert settings.aws_profile == "default"
        assert settings.default_aws_region == "us-east-1"
        assert settings.default_environment == "dev"
        assert settings.default_project_name == "twin"
        assert settings.environments == ["dev", "test", "prod"]
        assert settings.invalidate_cdn is False
        assert settings.smoke_check_path == ""
        assert settings.public_api_url_key == "NEXT_PUBLIC_API_URL"


def test_settings_resolves_paths_against_project_root():
    """Test that layout helpers are rooted at project_root."""
    settings = Settings(_env_file=None, project_root=Path("/work"))
    assert settings.terraform_path == Path("/work/terraform")
    assert settings.backend_path == Path("/work/backend")
    assert settings.frontend_path == Path("/work/frontend")
    assert settings.resolved_artifact_path == Path("/work/backend/lambda-deployment.zip")


def test_only_production_environment_is_production():
    """Test production detection uses the configured name."""
    settings = Settings(_env_file=None)
    assert settings.is_production("prod")
    assert not settings.is_production("dev")
    assert not settings.is_production("test")

    custom = Settings(_env_file=None, production_environment="live")
    assert custom.is_production("live")
    assert not custom.is_production("prod")


def test_get_settings_returns_cached_instance():
    """Test that get_settings returns cached instance."""
    settings1 = get_settings()
    settings2 = get_settings()
    assert settings1 is settings2
