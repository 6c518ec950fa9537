# taskhub/services/storage_service.py
"""
Object storage for task and comment attachments (S3).

Keys are ``<prefix>/<epoch-ms>_<safe filename>``. Two users uploading the same
file name in the same millisecond collide; that is accepted.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable
from urllib.parse import quote

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from werkzeug.utils import secure_filename

from ..errors import StorageError
from ..records import OperationResult

log = logging.getLogger(__name__)

DELETE_BATCH_SIZE = 1000  # S3 DeleteObjects ceiling
MAX_WORKERS = 8
BOTO_CONFIG = BotoConfig(connect_timeout=5, read_timeout=10, retries={"total_max_attempts": 1})


def s3_client(region: str | None = None):
    return boto3.client("s3", region_name=region, config=BOTO_CONFIG)


def _chunks(seq: list, size: int):
    for i in range(0, len(seq), size):
        yield seq[i:i + size]


class AttachmentService:
    def __init__(self, client, bucket: str | None, region: str = "us-east-1"):
        self.client = client
        self.bucket = bucket or ""
        self.region = region

    @property
    def configured(self) -> bool:
        return bool(self.bucket) and self.client is not None

    def _require_bucket(self):
        if not self.configured:
            raise StorageError("S3 bucket not configured")

    # -----------------
    # Keys / URLs
    # -----------------

    @staticmethod
    def make_key(filename: str, prefix: str = "tasks") -> str:
        safe_name = secure_filename(filename or "")
        if not safe_name:
            raise ValueError("Empty filename")
        return f"{prefix}/{int(time.time() * 1000)}_{safe_name}"

    def object_url(self, key: str) -> str | None:
        if not self.bucket or not key:
            return None
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quote(key, safe='')}"

    def signed_get_url(self, key: str, ttl: int = 60) -> str:
        self._require_bucket()
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=int(ttl),
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Could not sign download for {key}: {e}") from e

    def signed_put_url(self, filename: str, content_type: str = "application/octet-stream",
                       ttl: int = 60, prefix: str = "tasks") -> tuple[str, str]:
        self._require_bucket()
        key = self.make_key(filename, prefix)
        try:
            url = self.client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type or "application/octet-stream"},
                ExpiresIn=int(ttl),
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Could not create presigned URL: {e}") from e
        return url, key

    def sign_many(self, keys: Iterable[str], ttl: int = 60, fallbacks: dict | None = None) -> dict[str, str | None]:
        """Sign every key concurrently; a key that fails gets its fallback URL or None."""
        fallbacks = fallbacks or {}
        unique = list(dict.fromkeys(k for k in keys if k))
        if not unique:
            return {}
        if not self.configured:
            return {k: fallbacks.get(k) for k in unique}

        def _one(key):
            try:
                return key, self.signed_get_url(key, ttl)
            except StorageError as e:
                log.warning("Failed to sign download for %s: %s", key, e)
                return key, fallbacks.get(key)

        with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(unique))) as pool:
            return dict(pool.map(_one, unique))

    # -----------------
    # Objects
    # -----------------

    def put_object(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        self._require_bucket()
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Could not store {key}: {e}") from e

    def batch_delete(self, keys: Iterable[str]) -> OperationResult:
        keys = list(dict.fromkeys(k for k in keys if k))
        result = OperationResult("batch_delete", value=keys)
        if not keys:
            return result
        if not self.configured:
            result.record("delete_objects", ok=False, reason="S3 bucket not configured")
            return result

        def _chunk(batch):
            step = f"delete_objects[{len(batch)}]"
            try:
                resp = self.client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except (ClientError, BotoCoreError) as e:
                log.warning("Failed to delete %d object(s): %s", len(batch), e)
                return [(step, False, str(e))]
            out = [(step, True, None)]
            for err in resp.get("Errors") or []:
                out.append((f"delete:{err.get('Key')}", False, err.get("Message") or err.get("Code")))
            return out

        batches = list(_chunks(keys, DELETE_BATCH_SIZE))
        with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(batches))) as pool:
            for steps in pool.map(_chunk, batches):
                for name, ok, reason in steps:
                    result.record(name, ok=ok, reason=reason)
        return result
