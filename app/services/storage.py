"""S3-compatible object storage write path."""

import asyncio
from typing import Any, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.errors import ConfigurationError, StorageWriteError
from app.core.logger import LogIcon, logger
from app.core.settings import Settings
from app.models.upload import StoredObject

PUBLIC_READ_ACL = "public-read"


class ObjectStorage(Protocol):
    """Write side of an object store as seen by the orchestrator."""

    async def put_object(self, key: str, content: bytes, content_type: str) -> StoredObject: ...


def build_public_url(bucket: str, host: str, key: str) -> str:
    """Virtual-hosted style URL, e.g. ``https://bucket.s3.region.amazonaws.com/key``."""
    return f"https://{bucket}.{host}/{key}"


def backend_message(error: Exception) -> str:
    """The object store's own error message, unclassified."""
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Message") or str(error)
    return str(error)


class S3Storage:
    """Publicly readable object writes on one bucket through a shared boto3 client.

    boto3 clients are thread safe, so a single instance (and its connection
    pool) serves every concurrent upload of the process.
    """

    def __init__(self, client: Any, bucket: str, region: str, public_host: str | None = None) -> None:
        self._client = client
        self.bucket = bucket
        self.region = region
        self.public_host = public_host or f"s3.{region}.amazonaws.com"

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3Storage":
        if not settings.AWS_BUCKET_NAME:
            raise ConfigurationError("AWS_BUCKET_NAME is not configured")

        client = boto3.client(
            "s3",
            region_name=settings.AWS_REGION,
            endpoint_url=settings.STORAGE_ENDPOINT,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            config=Config(
                max_pool_connections=settings.STORAGE_MAX_CONNECTIONS,
                retries={"total_max_attempts": 1, "mode": "standard"},
            ),
        )
        return cls(
            client,
            bucket=settings.AWS_BUCKET_NAME,
            region=settings.AWS_REGION,
            public_host=settings.storage_public_host,
        )

    def url_for(self, key: str) -> str:
        return build_public_url(self.bucket, self.public_host, key)

    def _put_object_sync(self, key: str, content: bytes, content_type: str) -> StoredObject:
        try:
            response = self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
                ACL=PUBLIC_READ_ACL,
            )
        except (ClientError, BotoCoreError) as ex:
            raise StorageWriteError(backend_message(ex)) from ex

        return StoredObject(
            key=key,
            url=self.url_for(key),
            bucket=self.bucket,
            region=self.region,
            etag=response.get("ETag", ""),
        )

    async def put_object(self, key: str, content: bytes, content_type: str) -> StoredObject:
        """Write one object. Single attempt: no retry, no multipart."""
        logger.debug("Putting object", icon=LogIcon.STORAGE, bucket=self.bucket, key=key, size=len(content))
        return await asyncio.to_thread(self._put_object_sync, key, content, content_type)

    def close(self) -> None:
        self._client.close()
