"""Product image storage in S3-compatible object storage (AWS S3, MinIO).

boto3 is synchronous; calls run in a worker thread via asyncio.to_thread.
"""
import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlparse

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from catalog_admin.config import settings
from catalog_admin.exceptions import StorageError, ValidationError
from catalog_admin.metrics import product_images_uploaded_total
from catalog_admin.schemas.product import ImageInfo

logger = structlog.get_logger(__name__)

ALLOWED_IMAGE_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
})

DEFAULT_EXTENSION = "jpg"


class S3StorageService:
    """Uploads and deletes product images.

    Objects are stored under ``<folder>/<uuid>.<ext>`` and addressed by URL.
    """

    def __init__(
        self,
        bucket: Optional[str],
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        max_bytes: int = 5 * 1024 * 1024,
    ) -> None:
        """Configure the client. ``bucket`` may be None; uploads then fail with StorageError."""
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.access_key = access_key
        self.secret_key = secret_key
        self.max_bytes = max_bytes
        self._client: Any = None

    @classmethod
    def from_settings(cls) -> "S3StorageService":
        return cls(
            bucket=settings.aws_s3_bucket_name,
            region=settings.aws_region,
            endpoint_url=settings.aws_s3_endpoint_url,
            access_key=settings.aws_access_key_id,
            secret_key=settings.aws_secret_access_key,
            max_bytes=settings.upload_max_bytes,
        )

    @property
    def client(self) -> Any:
        if self._client is None:
            extra = {} if self.endpoint_url is None else {"endpoint_url": self.endpoint_url}
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
                **extra,
            )
        return self._client

    def validate_image(self, content_type: Optional[str], size: int) -> None:
        """
        Check an upload before it reaches the store.

        Raises:
            ValidationError: If the type is not an allowed image type or the file is too large
        """
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError(
                "Invalid file type. Only images are allowed.",
                errors=[{"code": "invalid_file_type", "message": "Unsupported content type", "field": "image", "value": content_type}],
            )
        if size > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise ValidationError(
                f"File size too large. Maximum size is {limit_mb}MB.",
                errors=[{"code": "file_too_large", "message": f"Maximum size is {self.max_bytes} bytes", "field": "image", "value": size}],
            )

    async def upload(
        self,
        data: bytes,
        filename: Optional[str],
        content_type: Optional[str],
        folder: str = "products",
    ) -> ImageInfo:
        """
        Validate and store an image.

        Returns:
            ImageInfo with the public URL, object key and generated filename

        Raises:
            ValidationError: If the file is not an acceptable image
            StorageError: If no bucket is configured or the store rejects the upload
        """
        self.validate_image(content_type, len(data))
        bucket = self._require_bucket()

        stored_name = f"{uuid.uuid4()}.{file_extension(filename)}"
        key = f"{folder}/{stored_name}"
        metadata = {
            "original-name": filename or "",
            "uploaded-at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            await asyncio.to_thread(self._put_object, bucket, key, data, content_type, metadata)
        except (ClientError, BotoCoreError) as e:
            logger.error("s3_upload_failed", key=key, error=str(e))
            raise StorageError("Failed to upload file to S3") from e

        product_images_uploaded_total.labels(content_type=content_type).inc()
        logger.info("image_uploaded", key=key, size=len(data), content_type=content_type)
        return ImageInfo(url=self.url_for(key), key=key, filename=stored_name)

    async def delete(self, key: str) -> None:
        """
        Remove an object.

        Raises:
            StorageError: If no bucket is configured or the store rejects the request
        """
        bucket = self._require_bucket()

        try:
            await asyncio.to_thread(self._delete_object, bucket, key)
        except (ClientError, BotoCoreError) as e:
            logger.error("s3_delete_failed", key=key, error=str(e))
            raise StorageError("Failed to delete file from S3") from e

        logger.info("image_deleted", key=key)

    def url_for(self, key: str) -> str:
        """Public URL of an object."""
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def key_from_url(self, url: str) -> Optional[str]:
        """
        Object key for a URL produced by ``url_for``.

        Path-style URLs carry the bucket as the first path segment; it is
        dropped. Returns None if the URL has no usable path.
        """
        try:
            path = urlparse(url).path
        except ValueError:
            return None

        parts = [part for part in path.split("/") if part]
        if parts and parts[0] == self.bucket:
            parts = parts[1:]
        return "/".join(parts) or None

    def _put_object(self, bucket: str, key: str, data: bytes, content_type: str, metadata: dict[str, str]) -> None:
        self.client.put_object(
            Bucket=bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            Metadata=metadata,
        )

    def _delete_object(self, bucket: str, key: str) -> None:
        self.client.delete_object(Bucket=bucket, Key=key)

    def _require_bucket(self) -> str:
        if not self.bucket:
            raise StorageError("AWS_S3_BUCKET_NAME is not configured")
        return self.bucket


def file_extension(filename: Optional[str]) -> str:
    """Lowercased extension of an uploaded filename, ``jpg`` if it has none."""
    if not filename or "." not in filename:
        return DEFAULT_EXTENSION
    return filename.rsplit(".", 1)[-1].lower() or DEFAULT_EXTENSION


def get_storage() -> S3StorageService:
    """FastAPI dependency returning the configured image store."""
    return S3StorageService.from_settings()
