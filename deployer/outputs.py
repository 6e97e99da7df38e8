"""Typed extraction of Terraform stack outputs."""

import logging
from typing import Any

from deployer.errors import OutputMissingError
from deployer.models import ApplyResult
from deployer.terraform import TerraformCLI

logger = logging.getLogger(__name__)

API_URL_OUTPUT = "api_gateway_url"
FRONTEND_BUCKET_OUTPUT = "s3_frontend_bucket"
CLOUDFRONT_URL_OUTPUT = "cloudfront_url"
CUSTOM_DOMAIN_OUTPUT = "custom_domain_url"
DISTRIBUTION_ID_OUTPUT = "cloudfront_distribution_id"

REQUIRED_OUTPUTS = (API_URL_OUTPUT, FRONTEND_BUCKET_OUTPUT, CLOUDFRONT_URL_OUTPUT)


def _optional(outputs: dict[str, Any], name: str) -> str | None:
    value = outputs.get(name)
    if value is None or value == "":
        return None
    return str(value)


def extract_outputs(outputs: dict[str, Any]) -> ApplyResult:
    """Build an ApplyResult from ``{output name: value}``.

    A disabled custom domain (absent or empty output) is not an error.

    Raises:
        OutputMissingError: If any required output is absent or empty.
    """
    missing = [name for name in REQUIRED_OUTPUTS if _optional(outputs, name) is None]
    if missing:
        raise OutputMissingError(f"Missing required stack outputs: {', '.join(missing)}")

    return ApplyResult(
        api_url=str(outputs[API_URL_OUTPUT]),
        frontend_bucket=str(outputs[FRONTEND_BUCKET_OUTPUT]),
        cloudfront_url=str(outputs[CLOUDFRONT_URL_OUTPUT]),
        custom_domain_url=_optional(outputs, CUSTOM_DOMAIN_OUTPUT),
        distribution_id=_optional(outputs, DISTRIBUTION_ID_OUTPUT),
    )


class OutputExtractor:
    """Reads the applied stack's outputs through the Terraform adapter."""

    def __init__(self, terraform: TerraformCLI):
        self.terraform = terraform

    def extract(self) -> ApplyResult:
        result = extract_outputs(self.terraform.outputs())
        logger.info(
            "Read stack outputs",
            extra={
                "frontend_bucket": result.frontend_bucket,
                "custom_domain": result.custom_domain_url is not None,
            },
        )
        return result

    def frontend_bucket(self) -> str | None:
        """Frontend bucket id from a possibly partial stack (teardown)."""
        return _optional(self.terraform.outputs(), FRONTEND_BUCKET_OUTPUT)
