"""Remote state backend discovery.

The state bucket name is deterministic (prefix + account id) so every run
lands on the same state. Its region is probed rather than assumed: the
bucket may have been created outside the operator's default region.
"""

import logging
from typing import TYPE_CHECKING

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from common.config import Settings
from deployer.errors import BackendResolutionError
from deployer.models import DeploymentTarget, StateBackendConfig

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)

# GetBucketLocation returns no constraint for buckets in us-east-1
UNSPECIFIED_LOCATION_REGION = "us-east-1"

# Constraints that predate region names
LEGACY_LOCATION_CONSTRAINTS = {
    "EU": "eu-west-1",
}


def state_bucket_name(prefix: str, account_id: str) -> str:
    """Deterministic state bucket name for an account."""
    return f"{prefix}-{account_id}"


def normalize_location(constraint: str | None) -> str:
    """Turn a GetBucketLocation ``LocationConstraint`` into a region name.

    ``None``, the empty string and the CLI's textual ``"None"`` all mean
    us-east-1.
    """
    if constraint in (None, "", "None"):
        return UNSPECIFIED_LOCATION_REGION
    return LEGACY_LOCATION_CONSTRAINTS.get(constraint, constraint)


class StateBackendResolver:
    """Computes the S3 backend configuration for one environment."""

    def __init__(self, settings: Settings, session: boto3.Session):
        self.settings = settings
        self._s3: "S3Client" = session.client("s3")

    def probe_region(self, bucket: str) -> str:
        """Return the actual region of an existing bucket.

        Raises:
            BackendResolutionError: If the bucket does not exist or cannot be read.
        """
        try:
            response = self._s3.get_bucket_location(Bucket=bucket)
        except (BotoCoreError, ClientError) as e:
            raise BackendResolutionError(f"Cannot locate bucket {bucket}: {e}") from e
        return normalize_location(response.get("LocationConstraint"))

    def resolve(self, environment: str, target: DeploymentTarget) -> StateBackendConfig:
        """Build the backend config, falling back to the default region."""
        bucket = state_bucket_name(self.settings.state_bucket_prefix, target.account_id)

        try:
            region = self.probe_region(bucket)
        except BackendResolutionError as e:
            region = self.settings.default_aws_region
            logger.info(f"{e}; using default region {region}")

        config = StateBackendConfig(
            bucket=bucket,
            key=self.settings.state_key_template.format(environment=environment),
            region=region,
            dynamodb_table=self.settings.lock_table_name,
            encrypt=self.settings.state_encrypt,
        )
        logger.info(f"   Bucket: {config.bucket}")
        logger.info(f"   Region: {config.region}")
        return config
