# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""S3-compatible blob storage (AWS S3 or MinIO) using boto3.

boto3 is synchronous, so every call runs in a worker thread. Throttling,
server-side and connection errors are retried with exponential backoff.
"""

import asyncio
import logging
from typing import Any, Callable, Optional, TypeVar

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, EndpointConnectionError

from src.core.config.settings import StorageSettings
from src.infrastructure.storage.base import (
    BlobNotFoundError,
    BlobStorage,
    StorageError,
    StoredBlob,
    normalize_path,
    normalize_prefix,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_RETRYABLE_CODES = {
    "500",
    "502",
    "503",
    "504",
    "InternalError",
    "RequestTimeout",
    "SlowDown",
    "Throttling",
    "ThrottlingException",
    "ServiceUnavailable",
}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3BlobStorage(BlobStorage):
    """Blob storage in an S3 bucket."""

    def __init__(
        self,
        settings: StorageSettings,
        public_base_url: str,
        client: Optional[Any] = None,
        base_delay: float = 0.5,
        max_delay: float = 8.0,
    ) -> None:
        super().__init__(public_base_url)
        self._settings = settings
        self._bucket = settings.bucket
        self._client = client
        self._bucket_checked = False
        self._base_delay = base_delay
        self._max_delay = max_delay

    def _get_client(self) -> Any:
        """Lazily create the boto3 client."""
        if self._client is None:
            kwargs: dict[str, Any] = {
                "region_name": self._settings.region,
                "config": Config(
                    signature_version="s3v4",
                    s3={"addressing_style": "path"},
                    retries={"max_attempts": 1},
                ),
            }
            if self._settings.endpoint_url:
                kwargs["endpoint_url"] = self._settings.endpoint_url
            if self._settings.access_key_id and self._settings.secret_access_key:
                kwargs["aws_access_key_id"] = self._settings.access_key_id.get_secret_value()
                kwargs["aws_secret_access_key"] = self._settings.secret_access_key.get_secret_value()
            self._client = boto3.client("s3", **kwargs)
        return self._client

    def _ensure_bucket(self, client: Any) -> None:
        """Create the bucket on first use if it does not exist."""
        if self._bucket_checked:
            return
        try:
            client.head_bucket(Bucket=self._bucket)
        except ClientError as e:
            if _error_code(e) not in _NOT_FOUND_CODES | {"NoSuchBucket"}:
                raise
            if self._settings.region != "us-east-1" and not self._settings.endpoint_url:
                client.create_bucket(
                    Bucket=self._bucket,
                    CreateBucketConfiguration={"LocationConstraint": self._settings.region},
                )
            else:
                client.create_bucket(Bucket=self._bucket)
            logger.info("Created bucket '%s'", self._bucket)
        self._bucket_checked = True

    async def _call(self, operation: str, fn: Callable[[Any], T]) -> T:
        """Run a client call in a thread, retrying transient failures."""
        attempts = self._settings.max_retries + 1
        for attempt in range(attempts):
            try:

                def _run() -> T:
                    client = self._get_client()
                    self._ensure_bucket(client)
                    return fn(client)

                return await asyncio.to_thread(_run)
            except ClientError as e:
                code = _error_code(e)
                if code in _NOT_FOUND_CODES:
                    raise BlobNotFoundError(f"{operation}: blob not found") from e
                if code not in _RETRYABLE_CODES or attempt == attempts - 1:
                    raise StorageError(f"S3 {operation} failed", e) from e
                last_error: Exception = e
            except EndpointConnectionError as e:
                if attempt == attempts - 1:
                    raise StorageError(f"S3 {operation} failed", e) from e
                last_error = e
            except BotoCoreError as e:
                raise StorageError(f"S3 {operation} failed", e) from e

            delay = min(self._base_delay * (2**attempt), self._max_delay)
            logger.warning(
                "S3 %s attempt %d/%d failed: %s. Retrying in %.1fs",
                operation,
                attempt + 1,
                attempts,
                last_error,
                delay,
            )
            await asyncio.sleep(delay)

        raise StorageError(f"S3 {operation} failed")

    async def put(self, path: str, data: bytes, content_type: str | None = None) -> StoredBlob:
        key = normalize_path(path)
        extra = {"ContentType": content_type} if content_type else {}
        await self._call(
            "put",
            lambda client: client.put_object(Bucket=self._bucket, Key=key, Body=data, **extra),
        )
        logger.info("Stored blob in S3: key=%s, size=%d", key, len(data))
        return StoredBlob(path=key, size=len(data), url=self.url_for(key), content_type=content_type)

    async def get(self, path: str) -> bytes:
        key = normalize_path(path)
        response = await self._call(
            "get",
            lambda client: client.get_object(Bucket=self._bucket, Key=key)["Body"].read(),
        )
        return response

    async def delete(self, path: str) -> bool:
        key = normalize_path(path)
        if not await self.exists(key):
            return False
        await self._call("delete", lambda client: client.delete_object(Bucket=self._bucket, Key=key))
        return True

    async def list(self, prefix: str = "") -> list[StoredBlob]:
        normalized = normalize_prefix(prefix)

        def _list(client: Any) -> list[dict[str, Any]]:
            paginator = client.get_paginator("list_objects_v2")
            objects: list[dict[str, Any]] = []
            for page in paginator.paginate(Bucket=self._bucket, Prefix=normalized):
                objects.extend(page.get("Contents", []))
            return objects

        objects = await self._call("list", _list)
        return sorted(
            (
                StoredBlob(
                    path=obj["Key"],
                    size=int(obj.get("Size", 0)),
                    url=self.url_for(obj["Key"]),
                    last_modified=obj.get("LastModified"),
                )
                for obj in objects
            ),
            key=lambda blob: blob.path,
        )

    async def exists(self, path: str) -> bool:
        key = normalize_path(path)
        try:
            await self._call("head", lambda client: client.head_object(Bucket=self._bucket, Key=key))
            return True
        except BlobNotFoundError:
            return False

    async def ping(self) -> bool:
        try:
            await self._call("head_bucket", lambda client: client.head_bucket(Bucket=self._bucket))
            return True
        except StorageError:
            return False
