"""CLI entrypoint for deployments.

Usage:
    python -m deployer                      # deploy twin to dev
    python -m deployer prod                 # deploy twin to prod
    python -m deployer test myproject       # deploy myproject to test
    python -m deployer dev --destroy        # tear down dev

Reads AWS_PROFILE and DEFAULT_AWS_REGION (and the rest of
common.config.Settings) from the environment or a .env file.
"""

import argparse
import logging
import sys

from common.config import get_settings
from deployer.errors import DeploymentError
from deployer.pipeline import DeploymentPipeline

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    # Keep SDK chatter out of the deployment log
    for name in ("boto3", "botocore", "urllib3", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)


def report_failure(error: DeploymentError) -> None:
    """Print a short stage-specific diagnostic to stderr."""
    print(f"{error.stage} failed: {error}", file=sys.stderr)
    if error.detail:
        print(error.detail, file=sys.stderr)
    if error.remedy:
        print(error.remedy, file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Deploy or tear down an environment")
    parser.add_argument(
        "environment",
        nargs="?",
        default=None,
        help="Target environment (default: DEFAULT_ENVIRONMENT, normally dev)",
    )
    parser.add_argument(
        "project_name",
        nargs="?",
        default=None,
        help="Project name passed to Terraform (default: DEFAULT_PROJECT_NAME, normally twin)",
    )
    parser.add_argument(
        "--destroy",
        action="store_true",
        help="Empty the frontend bucket and destroy the environment's stack",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    try:
        pipeline = DeploymentPipeline(get_settings(), args.environment, args.project_name)
        if args.destroy:
            pipeline.destroy()
        else:
            pipeline.deploy()
    except DeploymentError as e:
        logger.error(f"{e.stage} failed")
        report_failure(e)
        return 1
    except KeyboardInterrupt:
        print("Interrupted; the environment may be partially updated.", file=sys.stderr)
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
