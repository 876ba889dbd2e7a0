"""
S3-backed blob storage.

Objects live under ``<prefix>/`` in one bucket and are referenced by their
public virtual-hosted URL. boto3 is synchronous, so each call runs in a worker
thread under an overall deadline; expiry surfaces as StorageUnavailableError.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List
from urllib.parse import unquote, urlparse
from uuid import uuid4

from botocore.exceptions import BotoCoreError, ClientError

from storefront.core.log import get_logger
from storefront.domain.errors import StorageUnavailableError
from storefront.repositories.blob_storage import BlobInfo, BlobStore, file_extension

logger = get_logger("s3_storage")


def build_s3_client(settings) -> Any:
    import boto3
    from botocore.config import Config

    timeout = max(1.0, float(settings.blob_timeout_seconds))
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id or None,
        aws_secret_access_key=settings.aws_secret_access_key or None,
        config=Config(connect_timeout=timeout, read_timeout=timeout, retries={"max_attempts": 2}),
    )


class S3BlobStore(BlobStore):
    name = "s3"

    def __init__(
        self,
        client: Any,
        bucket: str,
        region: str = "us-east-1",
        prefix: str = "uploads",
        *,
        public_read: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.region = region
        self.prefix = prefix.strip("/")
        self.public_read = public_read
        self.timeout = timeout
        self.base_url = f"https://{bucket}.s3.{region}.amazonaws.com/"

    def url_for(self, key: str) -> str:
        return self.base_url + key

    def owns(self, reference: object) -> bool:
        return isinstance(reference, str) and reference.startswith(self.base_url)

    def identity_of(self, reference: str) -> str:
        return reference.split("?", 1)[0]

    def key_for(self, reference: str) -> str:
        path = unquote(urlparse(self.identity_of(reference)).path.lstrip("/"))
        # path-style URLs carry the bucket as first segment
        if path.startswith(self.bucket + "/"):
            path = path[len(self.bucket) + 1:]
        return path

    async def _call(self, what: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, **kwargs), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise StorageUnavailableError(f"s3 {what} timed out after {self.timeout}s") from exc

    async def upload(self, data: bytes, content_type: str, original_name: str) -> str:
        key = f"{self.prefix}/{uuid4()}{file_extension(original_name)}"
        params = {"Bucket": self.bucket, "Key": key, "Body": data, "ContentType": content_type}
        if self.public_read:
            params["ACL"] = "public-read"
        try:
            await self._call("upload", self.client.put_object, **params)
        except (BotoCoreError, ClientError) as exc:
            raise StorageUnavailableError(f"s3 upload failed for {original_name!r}: {exc}") from exc
        logger.info("blob stored", extra={"backend": self.name, "reference": self.url_for(key)})
        return self.url_for(key)

    async def delete(self, reference: str) -> bool:
        if not self.owns(reference):
            return False
        key = self.key_for(reference)
        try:
            await self._call("delete", self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            logger.warning("blob delete failed", extra={"backend": self.name, "reference": reference, "error": str(exc)})
            return False
        return True

    def _scan(self) -> List[BlobInfo]:
        paginator = self.client.get_paginator("list_objects_v2")
        found: List[BlobInfo] = []
        for page in paginator.paginate(Bucket=self.bucket, Prefix=self.prefix + "/"):
            for item in page.get("Contents") or []:
                url = self.url_for(item["Key"])
                found.append(BlobInfo(identity=url, reference=url))
        return found

    async def list(self) -> List[BlobInfo]:
        try:
            return await asyncio.wait_for(asyncio.to_thread(self._scan), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise StorageUnavailableError(f"s3 list timed out after {self.timeout}s") from exc
        except (BotoCoreError, ClientError) as exc:
            raise StorageUnavailableError(f"s3 list failed: {exc}") from exc
