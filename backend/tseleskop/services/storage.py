"""S3 object storage for goal and profile images."""
from __future__ import annotations

import logging
from functools import lru_cache
from time import time
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from tseleskop.core.config import Settings, settings
from tseleskop.core.errors import ConfigurationError
from tseleskop.observability.tracing import trace

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    pass


class ObjectStorage:
    """Thin wrapper over an S3 bucket; the boto3 client is created on first use."""

    def __init__(
        self,
        *,
        bucket: Optional[str],
        region: str,
        access_key: Optional[str],
        secret_key: Optional[str],
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self._access_key = access_key
        self._secret_key = secret_key
        self._client = client

    @classmethod
    def from_settings(cls, config: Settings) -> "ObjectStorage":
        return cls(
            bucket=config.aws_bucket_name,
            region=config.aws_region,
            access_key=config.aws_access_key,
            secret_key=config.aws_secret_key,
        )

    def _get_client(self) -> Any:
        if not self.bucket:
            raise ConfigurationError("AWS_BUCKET_NAME is not configured")
        if self._client is None:
            if not self._access_key or not self._secret_key:
                raise ConfigurationError("AWS credentials are not configured")
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self._access_key,
                aws_secret_access_key=self._secret_key,
            )
            logger.info("S3 client initialized (region=%s, bucket=%s)", self.region, self.bucket)
        return self._client

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, data: bytes, key: str, content_type: str = "image/jpeg") -> str:
        client = self._get_client()
        with trace("storage.upload", metadata={"key": key, "size": len(data)}):
            try:
                client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
            except (BotoCoreError, ClientError) as exc:
                logger.error("S3 upload of %s failed: %s", key, exc)
                raise StorageError(f"Failed to upload {key}") from exc
        url = self.public_url(key)
        logger.info("Uploaded %s (%d bytes)", key, len(data))
        return url

    def delete(self, key: str) -> None:
        client = self._get_client()
        with trace("storage.delete", metadata={"key": key}):
            try:
                client.delete_object(Bucket=self.bucket, Key=key)
            except (BotoCoreError, ClientError) as exc:
                logger.error("S3 delete of %s failed: %s", key, exc)
                raise StorageError(f"Failed to delete {key}") from exc
        logger.info("Deleted %s", key)


def object_key(prefix: str) -> str:
    """``<prefix>-<epoch millis>.jpg``, unique enough for one user's uploads."""
    return f"{prefix}-{int(time() * 1000)}.jpg"


def key_from_url(url: str | None) -> str | None:
    if not url:
        return None
    key = url.rstrip("/").rsplit("/", 1)[-1]
    return key or None


@lru_cache
def get_storage() -> ObjectStorage:
    return ObjectStorage.from_settings(settings)
