"""Final deployment report."""

import logging
import sys
from typing import TextIO

import httpx

from deployer.models import ApplyResult

logger = logging.getLogger(__name__)


class OutputReporter:
    """Prints the reachable endpoints once everything is deployed.

    Nothing here can fail the deployment: it has already happened.
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        *,
        smoke_check_path: str = "",
        timeout_seconds: float = 10.0,
    ):
        self.stream = stream or sys.stdout
        self.smoke_check_path = smoke_check_path
        self.timeout_seconds = timeout_seconds

    def report(self, result: ApplyResult) -> None:
        lines = [
            "",
            "Deployment complete!",
            f"CloudFront URL : {result.cloudfront_url}",
        ]
        if result.custom_domain_url:
            lines.append(f"Custom domain  : {result.custom_domain_url}")
        lines.append(f"API Gateway    : {result.api_url}")

        try:
            self.stream.write("\n".join(lines) + "\n")
            self.stream.flush()
        except OSError as e:
            logger.warning(f"Could not print deployment report: {e}")

        if self.smoke_check_path:
            self.smoke_check(result.api_url)

    def smoke_check(self, api_url: str) -> bool:
        """GET the configured path on the deployed API. Never raises."""
        url = api_url.rstrip("/") + "/" + self.smoke_check_path.lstrip("/")
        try:
            response = httpx.get(url, timeout=self.timeout_seconds)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Smoke check {url} failed: {e}")
            return False

        if response.is_success:
            logger.info(f"Smoke check {url} returned {response.status_code}")
            return True
        logger.warning(f"Smoke check {url} returned {response.status_code}")
        return False
