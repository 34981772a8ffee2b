import asyncio
import logging
from typing import Dict, Optional, Protocol

from google.cloud import storage

from .models import ImagePayload

logger = logging.getLogger(__name__)

PUBLIC_URL_BASE = "https://storage.googleapis.com"


def thumbnail_path(batch_id: str, record_id: str, extension: str) -> str:
    return f"bulk-prompts/{batch_id}/{record_id}/thumbnail.{extension}"


class ThumbnailStorage(Protocol):
    async def save(self, image: ImagePayload, path: str, metadata: Dict[str, str]) -> str:
        """Store the image publicly and return its URL."""


class GCSThumbnailStorage:
    """Writes generated thumbnails to a Cloud Storage bucket."""

    def __init__(self, bucket_name: str, client: Optional[storage.Client] = None) -> None:
        self.bucket_name = bucket_name
        self.client = client or storage.Client()

    def public_url(self, path: str) -> str:
        return f"{PUBLIC_URL_BASE}/{self.bucket_name}/{path}"

    def _save_sync(self, image: ImagePayload, path: str, metadata: Dict[str, str]) -> str:
        bucket = self.client.bucket(self.bucket_name)
        blob = bucket.blob(path)
        blob.metadata = metadata
        blob.upload_from_string(image.data, content_type=image.mime_type)
        blob.make_public()
        return self.public_url(path)

    async def save(self, image: ImagePayload, path: str, metadata: Dict[str, str]) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self._save_sync(image, path, metadata))
