"""State store in an AWS S3 bucket."""

import logging
from collections.abc import Iterator
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from cloudprism.engine import PulumiEngine
from cloudprism.errors import (
    ConfigurationError,
    PurgeError,
    StateStoreInaccessibleError,
    StateStoreNotEmptyError,
    StateStoreNotFoundError,
)
from cloudprism.naming import sanitize
from cloudprism.settings import AWSCredentials

from .base import StateStore

logger = logging.getLogger(__name__)

BUCKET_SUFFIX = "-state"
ENCRYPTION_ALGORITHM = "AES256"

_NOT_FOUND_CODES = ("404", "NoSuchBucket", "NotFound")
_ALREADY_DELETED_CODES = ("NoSuchKey", "NoSuchVersion")


def _error_code(error: ClientError) -> str | None:
    return error.response.get("Error", {}).get("Code")


class S3StateStore(StateStore):
    """
    State store in a versioned, encrypted S3 bucket.

    The bucket is named after the sanitized base name plus "-state" and is
    created on first open in the configured region. Only a freshly created
    bucket gets tagged and has AES256 default encryption applied.

    Forced deletion drains both the object listing and the version listing
    (versions and delete markers) page by page before deleting the bucket,
    since S3 refuses to delete a bucket while any version remains.

    Usage:
        store = S3StateStore("my-app-prd", tags={"team": "platform"})
        uri = store.open()        # "s3://my-app-prd-state"
        store.delete(force=True)
    """

    scheme = "s3"

    def __init__(
        self,
        base_name: str,
        tags: dict[str, str] | None = None,
        credentials: AWSCredentials | None = None,
        s3: Any | None = None,
        engine: PulumiEngine | None = None,
    ):
        """
        Initialize the store. Nothing is contacted until open().

        Args:
            base_name: Base of the bucket name
            tags: Tags applied to the bucket when it is created
            credentials: AWS credentials and region (read from the
                environment when omitted)
            s3: Pre-built S3 client, mainly for tests
            engine: Engine used for login/logout
        """
        super().__init__(engine)
        self.base_name = base_name
        self.tags = dict(tags or {})
        self.credentials = credentials or AWSCredentials()
        self.region = self.credentials.region
        self._s3 = s3

    @property
    def bucket_name(self) -> str:
        return sanitize(self.base_name) + BUCKET_SUFFIX

    @property
    def uri(self) -> str:
        return f"{self.scheme}://{self.bucket_name}"

    @property
    def client(self) -> Any:
        """S3 client built from the configured credentials on first use."""
        if self._s3 is None:
            creds = self.credentials
            if not creds.access_key_id or not creds.secret_access_key:
                raise ConfigurationError(
                    "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY must be set for the S3 state store"
                )
            try:
                self._s3 = boto3.client(
                    "s3",
                    region_name=self.region,
                    aws_access_key_id=creds.access_key_id,
                    aws_secret_access_key=creds.secret_access_key,
                    aws_session_token=creds.session_token,
                )
            except (BotoCoreError, ValueError) as e:
                raise ConfigurationError(
                    f"Cannot create S3 client for region {self.region}: {e}"
                ) from e
        return self._s3

    def _log_context(self) -> str:
        return f"bucket={self.bucket_name} region={self.region}"

    def open(self) -> str:
        try:
            if not self._bucket_exists():
                self._create_bucket()
        except NoCredentialsError as e:
            raise ConfigurationError(f"No AWS credentials available: {e}") from e

        self._check_accessible()

        uri = self.uri
        try:
            self.engine.login(uri)
        except Exception as e:
            logger.error(f"S3StateStore login to {uri} failed: {e}")
            raise

        return uri

    def close(self) -> None:
        self._check_accessible()

        uri = self.uri
        try:
            self.engine.logout(uri)
        except Exception as e:
            logger.error(f"S3StateStore logout from {uri} failed: {e}")
            raise

    def delete(self, force: bool = False) -> None:
        self.close()
        self._delete_bucket(force)

    def _bucket_exists(self) -> bool:
        """Check by exact name whether the bucket is among the visible buckets."""
        kwargs: dict[str, Any] = {}

        while True:
            try:
                response = self.client.list_buckets(**kwargs)
            except ClientError as e:
                logger.error(
                    f"S3StateStore failed to list buckets ({self._log_context()}): {e}"
                )
                raise
            except NoCredentialsError:
                raise
            except BotoCoreError as e:
                logger.error(
                    f"S3StateStore cannot reach S3 to list buckets ({self._log_context()}): {e}"
                )
                raise StateStoreInaccessibleError(
                    f"Cannot list buckets to find {self.bucket_name}: {e}",
                    store=self.bucket_name,
                ) from e

            for bucket in response.get("Buckets", []):
                if bucket.get("Name") == self.bucket_name:
                    logger.debug(f"S3StateStore bucket exists ({self._log_context()})")
                    return True

            token = response.get("ContinuationToken")
            if not token:
                break
            kwargs["ContinuationToken"] = token

        logger.debug(f"S3StateStore bucket does not exist ({self._log_context()})")
        return False

    def _create_bucket(self) -> None:
        logger.debug(f"S3StateStore creating bucket ({self._log_context()})")

        create_args: dict[str, Any] = {"Bucket": self.bucket_name}
        # us-east-1 is the only region S3 rejects as an explicit location
        if self.region != "us-east-1":
            create_args["CreateBucketConfiguration"] = {
                "LocationConstraint": self.region
            }

        try:
            response = self.client.create_bucket(**create_args)
        except ClientError as e:
            logger.error(
                f"S3StateStore failed to create bucket ({self._log_context()}): {e}"
            )
            raise

        logger.debug(
            f"S3StateStore created bucket {response.get('Location')} ({self._log_context()})"
        )

        if self.tags:
            self._tag_bucket()

        self._encrypt_bucket()

    def _tag_bucket(self) -> None:
        logger.debug(
            f"S3StateStore tagging bucket with {len(self.tags)} tags ({self._log_context()})"
        )

        tag_set = []
        for key, value in self.tags.items():
            logger.debug(f"S3StateStore tag {key}={value} ({self._log_context()})")
            tag_set.append({"Key": key, "Value": value})

        try:
            self.client.put_bucket_tagging(
                Bucket=self.bucket_name, Tagging={"TagSet": tag_set}
            )
        except ClientError as e:
            logger.error(
                f"S3StateStore failed to tag bucket ({self._log_context()}): {e}"
            )
            raise

    def _encrypt_bucket(self) -> None:
        logger.debug(
            f"S3StateStore applying {ENCRYPTION_ALGORITHM} bucket encryption ({self._log_context()})"
        )

        try:
            self.client.put_bucket_encryption(
                Bucket=self.bucket_name,
                ServerSideEncryptionConfiguration={
                    "Rules": [
                        {
                            "ApplyServerSideEncryptionByDefault": {
                                "SSEAlgorithm": ENCRYPTION_ALGORITHM
                            }
                        }
                    ]
                },
            )
        except ClientError as e:
            logger.error(
                f"S3StateStore failed to apply bucket encryption ({self._log_context()}): {e}"
            )
            raise

    def _check_accessible(self) -> None:
        """Probe the bucket, telling "missing" apart from "not reachable"."""
        try:
            self.client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            code = _error_code(e)
            if code in _NOT_FOUND_CODES:
                logger.error(
                    f"S3StateStore bucket not found ({self._log_context()})"
                )
                raise StateStoreNotFoundError(
                    f"Bucket {self.bucket_name} does not exist",
                    store=self.bucket_name,
                ) from e
            logger.error(
                f"S3StateStore bucket is not accessible ({self._log_context()}): {e}"
            )
            raise StateStoreInaccessibleError(
                f"Bucket {self.bucket_name} is not accessible ({code})",
                store=self.bucket_name,
            ) from e
        except NoCredentialsError as e:
            raise ConfigurationError(f"No AWS credentials available: {e}") from e
        except BotoCoreError as e:
            logger.error(
                f"S3StateStore bucket is not reachable ({self._log_context()}): {e}"
            )
            raise StateStoreInaccessibleError(
                f"Bucket {self.bucket_name} is not reachable: {e}",
                store=self.bucket_name,
            ) from e

        logger.debug(f"S3StateStore bucket accessible ({self._log_context()})")

    def _iter_object_pages(self) -> Iterator[list[dict[str, Any]]]:
        """Yield the current objects of the bucket one listing page at a time.

        Each page must be fully processed before the next one is requested.
        After a failure the listing has to start over.
        """
        kwargs: dict[str, Any] = {"Bucket": self.bucket_name}

        while True:
            try:
                page = self.client.list_objects_v2(**kwargs)
            except ClientError as e:
                logger.error(
                    f"S3StateStore failed to list objects ({self._log_context()}): {e}"
                )
                raise

            yield page.get("Contents", [])

            if not page.get("IsTruncated"):
                break
            kwargs["ContinuationToken"] = page["NextContinuationToken"]

    def _iter_version_pages(
        self,
    ) -> Iterator[tuple[list[dict[str, Any]], list[dict[str, Any]]]]:
        """Yield (delete markers, versions) one version listing page at a time.

        Pagination advances the key marker and version id marker together.
        """
        kwargs: dict[str, Any] = {"Bucket": self.bucket_name}

        while True:
            try:
                page = self.client.list_object_versions(**kwargs)
            except ClientError as e:
                logger.error(
                    f"S3StateStore failed to list object versions ({self._log_context()}): {e}"
                )
                raise

            yield page.get("DeleteMarkers", []), page.get("Versions", [])

            if not page.get("IsTruncated"):
                break
            kwargs["KeyMarker"] = page.get("NextKeyMarker")
            kwargs["VersionIdMarker"] = page.get("NextVersionIdMarker")

    def _delete_object(self, key: str, version_id: str | None = None) -> None:
        logger.debug(
            f"S3StateStore deleting object key={key} version={version_id or ''} ({self._log_context()})"
        )

        delete_args: dict[str, Any] = {"Bucket": self.bucket_name, "Key": key}
        if version_id is not None:
            delete_args["VersionId"] = version_id

        try:
            self.client.delete_object(**delete_args)
        except ClientError as e:
            if _error_code(e) in _ALREADY_DELETED_CODES:
                logger.debug(
                    f"S3StateStore object already deleted key={key} version={version_id or ''}"
                )
                return
            logger.error(
                f"S3StateStore failed to delete object key={key} version={version_id or ''} ({self._log_context()}): {e}"
            )
            raise PurgeError(
                f"Error deleting object {key}/{version_id or ''}: {e}",
                bucket=self.bucket_name,
                key=key,
                version_id=version_id,
            ) from e
        except BotoCoreError as e:
            logger.error(
                f"S3StateStore failed to delete object key={key} version={version_id or ''} ({self._log_context()}): {e}"
            )
            raise PurgeError(
                f"Error deleting object {key}/{version_id or ''}: {e}",
                bucket=self.bucket_name,
                key=key,
                version_id=version_id,
            ) from e

    def _purge(self) -> int:
        """Delete every object, object version and delete marker in the bucket.

        Returns:
            Number of delete calls issued
        """
        deleted = 0

        for contents in self._iter_object_pages():
            for item in contents:
                self._delete_object(item["Key"])
                deleted += 1

        for delete_markers, versions in self._iter_version_pages():
            if delete_markers:
                logger.debug(
                    f"S3StateStore deleting {len(delete_markers)} delete markers ({self._log_context()})"
                )
            for item in delete_markers:
                self._delete_object(item["Key"], item["VersionId"])
                deleted += 1

            if versions:
                logger.debug(
                    f"S3StateStore deleting {len(versions)} object versions ({self._log_context()})"
                )
            for item in versions:
                self._delete_object(item["Key"], item["VersionId"])
                deleted += 1

        logger.debug(
            f"S3StateStore purged bucket with {deleted} deletes ({self._log_context()})"
        )
        return deleted

    def _delete_bucket(self, force: bool) -> None:
        logger.debug(f"S3StateStore deleting bucket ({self._log_context()})")

        if force:
            self._purge()

        try:
            self.client.delete_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            logger.error(
                f"S3StateStore failed to delete bucket ({self._log_context()}): {e}"
            )
            if _error_code(e) == "BucketNotEmpty":
                raise StateStoreNotEmptyError(
                    f"Bucket {self.bucket_name} is not empty",
                    store=self.bucket_name,
                ) from e
            raise

        logger.debug(f"S3StateStore bucket deleted ({self._log_context()})")
