"""
Blob store backed by Amazon S3.

Only ciphertext reaches S3; the blob pipeline encrypts before ``put`` and
decrypts after ``get``.
"""

import logging
from typing import Any

import boto3
import botocore.exceptions

from clinic_pii.core.config.settings import Settings
from clinic_pii.core.exceptions import BlobNotFoundError
from clinic_pii.core.interfaces import IBlobStore

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}


class S3BlobStore(IBlobStore):
    """S3 blob store implementation using boto3."""

    def __init__(self, region_name: str | None = None, client: Any = None):
        """
        Initialize with an optional region name or a preconfigured client.

        Args:
            region_name: AWS region used when no client is supplied
            client: boto3 S3 client to use instead of creating one
        """
        self.region_name = region_name
        self._client = client if client is not None else boto3.client("s3", region_name=region_name)

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3BlobStore":
        return cls(region_name=settings.AWS_REGION)

    def put(self, bucket: str, key: str, data: bytes) -> None:
        """Upload an object to S3."""
        self._client.put_object(
            Bucket=bucket,
            Key=key,
            Body=data,
            ContentType="application/octet-stream",
        )

    def get(self, bucket: str, key: str) -> bytes:
        """
        Get an object's bytes from S3.

        Raises:
            BlobNotFoundError: If the bucket or key does not exist
            botocore.exceptions.ClientError: For any other S3 failure
        """
        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
        except botocore.exceptions.ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code in _NOT_FOUND_CODES:
                raise BlobNotFoundError(bucket, key) from e
            logger.error("S3 get_object failed with %s", error_code)
            raise

        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()

    def delete(self, bucket: str, keys: list[str]) -> None:
        """Delete objects from S3; S3 ignores keys that do not exist."""
        if not keys:
            return
        response = self._client.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": key} for key in keys], "Quiet": True},
        )
        errors = response.get("Errors", [])
        if errors:
            logger.error("S3 delete_objects reported %d errors", len(errors))
            raise botocore.exceptions.ClientError(
                {"Error": errors[0]}, "DeleteObjects"
            )

    def list_keys(self, bucket: str, prefix: str | None = None, limit: int = 100) -> list[str]:
        """List object keys in an S3 bucket with optional prefix."""
        params: dict[str, Any] = {"Bucket": bucket, "MaxKeys": limit}
        if prefix is not None:
            params["Prefix"] = prefix
        response = self._client.list_objects_v2(**params)
        return [item["Key"] for item in response.get("Contents", [])]
