"""AWS identity check with a single SSO renewal attempt."""

import logging
from collections.abc import Callable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from deployer.errors import CredentialError
from deployer.models import DeploymentTarget
from deployer.process import CommandResult, command_env, run_command

logger = logging.getLogger(__name__)


class CredentialGate:
    """Verifies the caller identity before any other AWS call is made.

    On failure it runs ``aws sso login`` once and re-checks with a fresh
    session. There is no further retry.
    """

    def __init__(
        self,
        profile: str,
        region: str,
        *,
        aws_cli: str = "aws",
        session_factory: Callable[..., boto3.Session] = boto3.Session,
        runner: Callable[..., CommandResult] = run_command,
    ):
        self.profile = profile
        self.region = region
        self.aws_cli = aws_cli
        self._session_factory = session_factory
        self._run = runner

    def _new_session(self) -> boto3.Session:
        return self._session_factory(profile_name=self.profile, region_name=self.region)

    def _identity(self) -> tuple[boto3.Session, DeploymentTarget] | None:
        """Open a session and call STS GetCallerIdentity.

        Returns None when credentials are unusable, including a profile
        that is not configured at all.
        """
        try:
            session = self._new_session()
            identity = session.client("sts").get_caller_identity()
        except (BotoCoreError, ClientError) as e:
            logger.debug(f"Identity check failed for profile {self.profile}: {e}")
            return None
        target = DeploymentTarget(
            account_id=identity["Account"],
            caller_arn=identity.get("Arn", ""),
            region=self.region,
            profile=self.profile,
        )
        return session, target

    def _renew(self) -> bool:
        logger.warning(
            f"AWS credentials not valid. Attempting SSO login (profile: {self.profile})..."
        )
        result = self._run(
            [self.aws_cli, "sso", "login", "--profile", self.profile],
            env=command_env(self.profile),
            interactive=True,
        )
        return result.ok

    def verify(self) -> tuple[boto3.Session, DeploymentTarget]:
        """Return a session and target bound to a working identity.

        Raises:
            CredentialError: If the identity check and the renewal both fail.
        """
        logger.info(f"Checking AWS credentials (profile: {self.profile})...")
        identity = self._identity()
        if identity is not None:
            _, target = identity
            logger.info(f"AWS credentials are valid (account {target.account_id})")
            return identity

        remedy = f"Run 'aws sso login --profile {self.profile}' manually, then re-run."
        if not self._renew():
            raise CredentialError("SSO login failed", remedy=remedy)

        # Credentials are cached per session, so re-check on a fresh one
        identity = self._identity()
        if identity is None:
            raise CredentialError(
                "AWS credentials are still not valid after SSO login", remedy=remedy
            )

        _, target = identity
        logger.info(f"AWS credentials renewed (account {target.account_id})")
        return identity
