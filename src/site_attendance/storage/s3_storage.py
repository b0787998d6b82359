from __future__ import annotations

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.exceptions import ProviderError
from .base import PhotoStorage

logger = logging.getLogger(__name__)


class S3PhotoStorage(PhotoStorage):
    """Photos in an S3 bucket. Uploads are never retried automatically."""

    def __init__(self, client, *, bucket: str, region: str):
        self._client = client
        self._bucket = bucket
        self._region = region

    @classmethod
    def from_settings(cls, *, bucket: str, region: str) -> "S3PhotoStorage":
        return cls(boto3.client("s3", region_name=region), bucket=bucket, region=region)

    def url_for(self, key: str) -> str:
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    def put(self, data: bytes, *, key: str, content_type: str) -> str:
        try:
            self._client.put_object(Bucket=self._bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 upload of %s failed: %s", key, e)
            raise ProviderError(f"S3 upload failed: {e}", provider="s3") from e
        return self.url_for(key)
