import io
import logging
import mimetypes
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Optional
from urllib.parse import quote

import boto3  # type: ignore
from botocore.exceptions import BotoCoreError, ClientError  # type: ignore
from fastapi.concurrency import run_in_threadpool
from PIL import Image, UnidentifiedImageError

from clinic_api.config import Settings, settings

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


class StorageMode(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"


def storage_mode_for(mime_type: str) -> StorageMode:
    return StorageMode.DOCUMENT if mime_type == PDF_MIME_TYPE else StorageMode.IMAGE


@dataclass
class StoredBlob:
    url: str
    external_id: str


class BlobStoreError(Exception):
    pass


class BlobStore(ABC):
    """Object storage for uploaded file bytes."""

    @abstractmethod
    async def upload(
        self, content: bytes, folder: str, filename: str, content_type: str, mode: StorageMode
    ) -> StoredBlob:
        ...

    @abstractmethod
    async def delete(self, external_id: str) -> bool:
        """Remove a blob. Returns False when the store has no such blob."""


def downsample_image(content: bytes, max_width: int) -> Optional[bytes]:
    """Re-encode an image as JPEG no wider than `max_width`. Returns None for unreadable bytes."""
    try:
        image = Image.open(io.BytesIO(content))
        if image.width > max_width:
            height = round(image.height * max_width / image.width)
            image = image.resize((max_width, height))
        if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
            image = image.convert("RGBA")
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[-1])
            image = background
        elif image.mode != "RGB":
            image = image.convert("RGB")

        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=85, optimize=True)
        return buffer.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Image downsampling skipped, storing original bytes: %s", e)
        return None


class S3BlobStore(BlobStore):
    def __init__(self, conf: Settings = settings):
        self.s3_client: Any = boto3.client(  # type: ignore
            "s3",
            aws_access_key_id=conf.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=conf.AWS_SECRET_ACCESS_KEY or None,
            region_name=conf.S3_REGION,
        )
        self.bucket = conf.S3_BUCKET
        self.region = conf.S3_REGION
        self.max_width = conf.IMAGE_MAX_WIDTH

    def _public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def _put(self, content: bytes, folder: str, filename: str, content_type: str, mode: StorageMode) -> StoredBlob:
        reencoded = downsample_image(content, self.max_width) if mode is StorageMode.IMAGE else None
        if reencoded is not None:
            content, content_type, extension = reencoded, "image/jpeg", ".jpg"
        else:
            extension = mimetypes.guess_extension(content_type) or ""

        key = f"{folder}/{uuid.uuid4().hex}{extension}"
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
                Metadata={"original-filename": quote(filename), "storage-mode": mode.value},
            )
        except (BotoCoreError, ClientError) as e:
            raise BlobStoreError(f"Upload of {filename} failed: {e}") from e

        return StoredBlob(url=self._public_url(key), external_id=key)

    def _remove(self, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in MISSING_OBJECT_CODES:
                return False
            raise BlobStoreError(f"Lookup of {key} failed: {e}") from e
        except BotoCoreError as e:
            raise BlobStoreError(f"Lookup of {key} failed: {e}") from e

        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise BlobStoreError(f"Deletion of {key} failed: {e}") from e
        return True

    async def upload(
        self, content: bytes, folder: str, filename: str, content_type: str, mode: StorageMode
    ) -> StoredBlob:
        return await run_in_threadpool(self._put, content, folder, filename, content_type, mode)

    async def delete(self, external_id: str) -> bool:
        return await run_in_threadpool(self._remove, external_id)


@lru_cache
def get_blob_store() -> BlobStore:
    return S3BlobStore()
