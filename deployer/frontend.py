"""Frontend build and mirror publish to S3.

Publishing mirrors the build directory onto the bucket: missing or changed
objects are uploaded, then objects with no local counterpart are deleted.
The bucket is not swapped atomically, so readers can briefly see a mix of
old and new assets. All uploads finish before the first deletion.
"""

import hashlib
import logging
import mimetypes
import uuid
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Any

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from common.config import Settings
from deployer.errors import BuildError, PublishError
from deployer.models import ApplyResult, FrontendBuild, PublishSummary
from deployer.process import CommandResult, command_env, run_command

if TYPE_CHECKING:
    from mypy_boto3_cloudfront import CloudFrontClient
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)

# DeleteObjects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000


def write_runtime_config(path: Path, key: str, api_url: str) -> Path:
    """Write the single ``KEY=value`` line the frontend build reads.

    The file is overwritten on every run.
    """
    path.write_text(f"{key}={api_url}\n", encoding="utf-8")
    return path


def local_files(root: Path) -> dict[str, Path]:
    """Map S3 keys to files under ``root``."""
    return {p.relative_to(root).as_posix(): p for p in sorted(root.rglob("*")) if p.is_file()}


def file_md5(path: Path) -> str:
    digest = hashlib.md5(usedforsecurity=False)
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def needs_upload(path: Path, remote: dict[str, Any] | None) -> bool:
    """Whether a local file differs from its S3 object.

    Multipart ETags are not MD5 digests, so those objects compare on size only.
    """
    if remote is None:
        return True
    if path.stat().st_size != remote.get("Size"):
        return True
    etag = str(remote.get("ETag", "")).strip('"')
    if not etag or "-" in etag:
        return False
    return file_md5(path) != etag


def batched(keys: list[str], size: int = DELETE_BATCH_SIZE) -> Iterator[list[str]]:
    for start in range(0, len(keys), size):
        yield keys[start : start + size]


class FrontendPublisher:
    """Builds the frontend against the deployed API and publishes it."""

    def __init__(
        self,
        settings: Settings,
        session: boto3.Session,
        *,
        runner: Callable[..., CommandResult] = run_command,
    ):
        self.settings = settings
        self._s3: "S3Client" = session.client("s3")
        self._cloudfront: "CloudFrontClient" = session.client("cloudfront")
        self._run = runner

    # -------------------------------------------------------------------------
    # Build
    # -------------------------------------------------------------------------

    def _npm(self, *args: str) -> None:
        result = self._run(
            [self.settings.npm_binary, *args],
            cwd=self.settings.frontend_path,
            env=command_env(),
            capture=False,
        )
        if not result.ok:
            raise BuildError(
                f"'{result.command}' failed (exit {result.returncode})",
                remedy=f"Run '{result.command}' in {self.settings.frontend_path} to see the error.",
                detail=result.diagnostic,
            )

    def build(self, api_url: str) -> FrontendBuild:
        """Write the runtime config and run the frontend build.

        Raises:
            BuildError: If the runtime config cannot be written, npm fails or
                the build leaves no output directory.
        """
        logger.info("Setting API URL for production...")
        env_path = self.settings.frontend_path / self.settings.frontend_env_file
        try:
            env_file = write_runtime_config(env_path, self.settings.public_api_url_key, api_url)
        except OSError as e:
            raise BuildError(
                f"Cannot write {env_path}: {e}",
                remedy=f"Check that {self.settings.frontend_path} exists and is writable.",
            ) from e

        self._npm("install")
        self._npm("run", "build")

        output_dir = self.settings.frontend_path / self.settings.frontend_build_dir
        if not output_dir.is_dir():
            raise BuildError(
                f"Frontend build produced no {self.settings.frontend_build_dir}/ directory",
                remedy="Check that the frontend is configured for static export.",
            )
        return FrontendBuild(env_file=env_file, output_dir=output_dir)

    # -------------------------------------------------------------------------
    # Mirror publish
    # -------------------------------------------------------------------------

    def _remote_objects(self, bucket: str) -> dict[str, dict[str, Any]]:
        objects: dict[str, dict[str, Any]] = {}
        paginator = self._s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket):
            for obj in page.get("Contents", []):
                objects[obj["Key"]] = obj
        return objects

    def _upload(self, path: Path, bucket: str, key: str) -> None:
        content_type, _ = mimetypes.guess_type(path.name)
        self._s3.upload_file(
            str(path),
            bucket,
            key,
            ExtraArgs={"ContentType": content_type or "application/octet-stream"},
        )

    def _delete(self, bucket: str, keys: list[str]) -> None:
        for batch in batched(keys):
            response = self._s3.delete_objects(
                Bucket=bucket,
                Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
            )
            errors = response.get("Errors", [])
            if errors:
                first = errors[0]
                raise PublishError(
                    f"Could not delete {len(errors)} object(s) from {bucket}: "
                    f"{first.get('Key')}: {first.get('Message')}"
                )

    def mirror(self, source_dir: Path | None, bucket: str) -> PublishSummary:
        """Make ``bucket`` hold exactly the files under ``source_dir``.

        ``source_dir=None`` empties the bucket.

        Raises:
            PublishError: If any S3 call fails or a local file cannot be read.
        """
        summary = PublishSummary()

        try:
            local = local_files(source_dir) if source_dir is not None else {}
            remote = self._remote_objects(bucket)

            for key, path in local.items():
                if needs_upload(path, remote.get(key)):
                    self._upload(path, bucket, key)
                    summary.uploaded.append(key)
                else:
                    summary.unchanged += 1

            extraneous = sorted(key for key in remote if key not in local)
            if extraneous:
                self._delete(bucket, extraneous)
                summary.deleted.extend(extraneous)
        except (BotoCoreError, ClientError, S3UploadFailedError, OSError) as e:
            raise PublishError(
                f"Sync to s3://{bucket}/ failed: {e}",
                remedy="Check write access to the frontend bucket and re-run.",
            ) from e

        logger.info(
            f"Synced s3://{bucket}/: {len(summary.uploaded)} uploaded, "
            f"{len(summary.deleted)} deleted, {summary.unchanged} unchanged"
        )
        return summary

    def empty_bucket(self, bucket: str) -> PublishSummary:
        """Delete every object in ``bucket``; a missing bucket is already empty."""
        try:
            self._s3.head_bucket(Bucket=bucket)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchBucket"):
                logger.info(f"Bucket {bucket} no longer exists")
                return PublishSummary()
            raise PublishError(f"Cannot access s3://{bucket}/: {e}") from e
        except BotoCoreError as e:
            raise PublishError(f"Cannot access s3://{bucket}/: {e}") from e

        logger.info(f"Emptying s3://{bucket}/")
        return self.mirror(None, bucket)

    def invalidate(self, distribution_id: str) -> str:
        """Invalidate every cached path on the distribution.

        Raises:
            PublishError: If CloudFront rejects the invalidation.
        """
        try:
            response = self._cloudfront.create_invalidation(
                DistributionId=distribution_id,
                InvalidationBatch={
                    "Paths": {"Quantity": 1, "Items": ["/*"]},
                    "CallerReference": str(uuid.uuid4()),
                },
            )
        except (BotoCoreError, ClientError) as e:
            raise PublishError(f"CloudFront invalidation failed: {e}") from e

        invalidation_id = response["Invalidation"]["Id"]
        logger.info(f"Created CloudFront invalidation {invalidation_id}")
        return invalidation_id

    def publish(self, result: ApplyResult) -> PublishSummary:
        """Build against ``result.api_url`` and mirror to ``result.frontend_bucket``."""
        build = self.build(result.api_url)
        summary = self.mirror(build.output_dir, result.frontend_bucket)

        if self.settings.invalidate_cdn:
            if result.distribution_id:
                summary.invalidation_id = self.invalidate(result.distribution_id)
            else:
                logger.warning(
                    "INVALIDATE_CDN is set but the stack has no cloudfront_distribution_id "
                    "output; cached assets may be stale"
                )
        return summary
