"""Blob store service backed by S3 (or any S3-compatible endpoint)"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings
from app.core.exceptions import RemoteStoreError

logger = logging.getLogger(__name__)

# DeleteObjects accepts at most 1000 keys per request
MAX_BATCH_DELETE_KEYS = 1000


@dataclass
class DeleteError:
    key: str
    code: str
    message: str


@dataclass
class BatchDeleteResult:
    """Per-key outcome of one batch delete call"""
    deleted_keys: List[str] = field(default_factory=list)
    errors: List[DeleteError] = field(default_factory=list)

    @property
    def failed_keys(self) -> List[str]:
        return [error.key for error in self.errors]

    @property
    def is_partial(self) -> bool:
        return bool(self.deleted_keys) and bool(self.errors)


class BlobStore(Protocol):
    def put(self, key: str, content: bytes, content_type: str) -> None: ...

    def batch_delete(self, keys: Sequence[str]) -> BatchDeleteResult: ...

    def presigned_get(self, key: str, ttl_minutes: int) -> str: ...

    def exists(self, key: str) -> bool: ...

    def public_url(self, key: str) -> str: ...


def _error_detail(exc: Exception) -> Tuple[str, str]:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        return error.get("Code", "Unknown"), error.get("Message", str(exc))
    return type(exc).__name__, str(exc)


class S3BlobStore:
    """Service for storing uploaded files in an S3 bucket"""

    def __init__(
        self,
        bucket: str,
        client=None,
        cdn_domain: str = "",
        region: str = "",
        cache_control: str = ""
    ):
        self.bucket = bucket
        self.cdn_domain = cdn_domain
        self.region = region
        self.cache_control = cache_control
        self._client = client

    @property
    def client(self):
        """Get or create the S3 client"""
        if self._client is None:
            kwargs = {"region_name": self.region or None}
            if settings.S3_ENDPOINT_URL:
                kwargs["endpoint_url"] = settings.S3_ENDPOINT_URL
            if settings.AWS_ACCESS_KEY_ID:
                kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
                kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY
            self._client = boto3.client("s3", **kwargs)
        return self._client

    def put(self, key: str, content: bytes, content_type: str) -> None:
        """Upload bytes under key"""
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": content,
            "ContentType": content_type,
        }
        if self.cache_control:
            params["CacheControl"] = self.cache_control

        try:
            self.client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            code, message = _error_detail(e)
            logger.error(f"S3 upload failed: bucket={self.bucket}, key={key}, code={code}, message={message}")
            raise RemoteStoreError("put", message, key=key) from e

        logger.info(f"S3 upload succeeded: bucket={self.bucket}, key={key}")

    def batch_delete(self, keys: Sequence[str]) -> BatchDeleteResult:
        """
        Delete up to 1000 keys in one call

        Returns the keys S3 confirmed and the per-key errors. A failure of
        the whole request raises RemoteStoreError.
        """
        keys = [key for key in keys if key and key.strip()]
        if not keys:
            return BatchDeleteResult()
        if len(keys) > MAX_BATCH_DELETE_KEYS:
            raise ValueError(f"batch_delete accepts at most {MAX_BATCH_DELETE_KEYS} keys, got {len(keys)}")

        try:
            response = self.client.delete_objects(
                Bucket=self.bucket,
                Delete={
                    "Objects": [{"Key": key} for key in keys],
                    "Quiet": False,
                },
            )
        except (ClientError, BotoCoreError) as e:
            code, message = _error_detail(e)
            raise RemoteStoreError("batch_delete", f"{code}: {message}") from e

        result = BatchDeleteResult(
            deleted_keys=[item["Key"] for item in response.get("Deleted", [])],
            errors=[
                DeleteError(
                    key=item.get("Key", ""),
                    code=item.get("Code", "Unknown"),
                    message=item.get("Message", ""),
                )
                for item in response.get("Errors", [])
            ],
        )

        for error in result.errors:
            logger.error(f"S3 delete failed: key={error.key}, code={error.code}, message={error.message}")

        return result

    def presigned_get(self, key: str, ttl_minutes: int) -> str:
        """Time-limited GET URL for an access-controlled object"""
        if not key or not key.strip():
            raise RemoteStoreError("presigned_get", "storage key is empty")

        try:
            url = self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl_minutes * 60,
            )
        except (ClientError, BotoCoreError) as e:
            code, message = _error_detail(e)
            raise RemoteStoreError("presigned_get", f"{code}: {message}", key=key) from e

        logger.info(f"Presigned URL generated: key={key}, ttl={ttl_minutes}m")
        return url

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code, message = _error_detail(e)
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise RemoteStoreError("head", f"{code}: {message}", key=key) from e
        except BotoCoreError as e:
            raise RemoteStoreError("head", str(e), key=key) from e
        return True

    def public_url(self, key: str) -> str:
        """Public URL, preferring the CDN domain"""
        if self.cdn_domain:
            return f"https://{self.cdn_domain}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"


_blob_store: Optional[S3BlobStore] = None


def get_blob_store() -> S3BlobStore:
    """Process-wide blob store built from settings"""
    global _blob_store
    if _blob_store is None:
        _blob_store = S3BlobStore(
            bucket=settings.S3_BUCKET,
            cdn_domain=settings.CLOUDFRONT_DOMAIN,
            region=settings.AWS_REGION,
            cache_control=settings.UPLOAD_CACHE_CONTROL,
        )
    return _blob_store
