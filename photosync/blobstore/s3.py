# PhotoSync S3 Blob Store
# boto3-backed blob store addressed with s3://bucket/key URLs

from typing import Any, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from photosync.blobstore.base import BlobStore, blob_name_for_code, extract_blob_name
from photosync.errors import BlobNotFoundError, PermanentStoreError, StoreError, TransientStoreError
from photosync.logger import get_logger

logger = get_logger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_TRANSIENT_CODES = {"RequestTimeout", "SlowDown", "ServiceUnavailable", "InternalError", "500", "503"}


def _translate(error: Exception, key: str) -> StoreError:
    """Map a botocore error onto the store error taxonomy."""
    if isinstance(error, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
        return TransientStoreError(f"S3 unreachable for {key}: {error}")
    if isinstance(error, ClientError):
        code = str(error.response.get("Error", {}).get("Code", ""))
        if code in _NOT_FOUND_CODES:
            return BlobNotFoundError(key)
        if code in _TRANSIENT_CODES:
            return TransientStoreError(f"S3 error {code} for {key}")
        return PermanentStoreError(f"S3 error {code} for {key}: {error}")
    return PermanentStoreError(f"S3 failure for {key}: {error}")


class S3BlobStore(BlobStore):
    """Blob store keeping each blob as an object in one S3 bucket."""

    def __init__(
        self,
        bucket: str,
        *,
        endpoint_url: Optional[str] = None,
        region: Optional[str] = None,
        client: Any = None,
    ):
        """
        Initialize store.

        Args:
            bucket: Bucket name (the container).
            endpoint_url: Custom endpoint, e.g. for MinIO.
            region: AWS region name.
            client: Pre-built S3 client; created from the arguments if None.
        """
        self.container = bucket
        self.bucket = bucket
        if client is None:
            config = BotoConfig(
                connect_timeout=5,
                read_timeout=30,
                retries={"max_attempts": 1, "mode": "standard"},
            )
            kwargs: dict[str, Any] = {"config": config}
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            if region:
                kwargs["region_name"] = region
            client = boto3.client("s3", **kwargs)
        self.client = client

    def _key(self, path: str) -> str:
        return extract_blob_name(path, self.bucket)

    def upload(self, blob_id: str, data: bytes) -> str:
        key = blob_name_for_code(blob_id)
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType="image/jpeg")
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, key) from e
        logger.debug("Uploaded s3://%s/%s (%d bytes)", self.bucket, key, len(data))
        return f"s3://{self.bucket}/{key}"

    def download(self, path: str) -> bytes:
        key = self._key(path)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, key) from e

    def delete(self, path: str) -> bool:
        if not self.exists(path):
            return False
        key = self._key(path)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, key) from e
        return True

    def exists(self, path: str) -> bool:
        key = self._key(path)
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except (ClientError, BotoCoreError) as e:
            error = _translate(e, key)
            if isinstance(error, BlobNotFoundError):
                return False
            raise error from e

    def test_connection(self) -> bool:
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 bucket %s not reachable: %s", self.bucket, e)
            return False
