"""
Thumbnail enrichment for bulk-created prompts.

Generates one square image per prompt and stores it publicly. Rate-limited
requests are retried with exponential backoff; every other failure resolves
to None so the owning record is kept without an image.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from .auth import TokenProvider
from .image_generation import ImageGenerationError, ImageGenerator
from .models import ImagePayload
from .storage import ThumbnailStorage, thumbnail_path

logger = logging.getLogger(__name__)

PROMPT_PREFIX_LENGTH = 400
THUMBNAIL_PROMPT_TEMPLATE = (
    "Generate a visually appealing, artistic thumbnail image representing: {text}. "
    "Modern, vibrant, visually striking, no text in image. Square aspect ratio."
)
MAX_RETRIES = 3
BASE_DELAY_SECONDS = 3.0
REQUEST_TYPE = "bulkPromptThumbnail"

SleepFunc = Callable[[float], Awaitable[None]]


def build_thumbnail_prompt(text: str) -> str:
    return THUMBNAIL_PROMPT_TEMPLATE.format(text=(text or "")[:PROMPT_PREFIX_LENGTH])


class ThumbnailEnricher:
    def __init__(
        self,
        generator: ImageGenerator,
        storage: ThumbnailStorage,
        token_provider: Optional[TokenProvider] = None,
        sleep: SleepFunc = asyncio.sleep,
        max_retries: int = MAX_RETRIES,
        base_delay: float = BASE_DELAY_SECONDS,
    ) -> None:
        self.generator = generator
        self.storage = storage
        self.token_provider = token_provider
        self.sleep = sleep
        self.max_retries = max_retries
        self.base_delay = base_delay

    async def enrich(self, text: str, record_id: str, batch_id: str) -> Optional[str]:
        """Generate and store a thumbnail, returning its public URL or None."""
        context = {"prompt_id": record_id, "batch_id": batch_id, "request_type": REQUEST_TYPE}

        image = await self._generate_with_retry(build_thumbnail_prompt(text), context)
        if image is None:
            return None
        return await self._save(image, record_id, batch_id, context)

    async def _generate_with_retry(self, prompt: str, context: dict) -> Optional[ImagePayload]:
        attempt = 0
        while True:
            try:
                token = await self.token_provider.get_token() if self.token_provider else None
                image = await self.generator.generate(prompt, token=token)
            except ImageGenerationError as exc:
                if exc.is_rate_limited and attempt < self.max_retries:
                    delay = self.base_delay * (2 ** attempt)
                    logger.warning(json.dumps({
                        "event": "thumbnail_rate_limited",
                        **context,
                        "retry_attempt": attempt + 1,
                        "delay_seconds": delay,
                    }))
                    await self.sleep(delay)
                    attempt += 1
                    continue
                self._log_failure(context, exc, attempt)
                return None
            except Exception as exc:
                self._log_failure(context, exc, attempt)
                return None

            if image is None:
                logger.warning(json.dumps({
                    "event": "thumbnail_missing_image_data",
                    **context,
                    "attempt": attempt,
                }))
            return image

    def _log_failure(self, context: dict, exc: Exception, attempt: int) -> None:
        logger.error(json.dumps({
            "event": "thumbnail_generation_failed",
            **context,
            "attempt": attempt,
            "error": str(exc),
        }))

    async def _save(
        self,
        image: ImagePayload,
        record_id: str,
        batch_id: str,
        context: dict,
    ) -> Optional[str]:
        path = thumbnail_path(batch_id, record_id, image.extension)
        metadata = {
            "model": getattr(self.generator, "model", "unknown"),
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "promptId": record_id,
            "batchId": batch_id,
            "requestType": REQUEST_TYPE,
        }
        try:
            url = await self.storage.save(image, path, metadata)
        except Exception as exc:
            logger.error(json.dumps({
                "event": "thumbnail_storage_failed",
                **context,
                "path": path,
                "error": str(exc),
            }))
            return None

        logger.info(json.dumps({"event": "thumbnail_saved", **context, "path": path, "public_url": url}))
        return url
