import logging
from typing import Optional

from .auth import GoogleAuthTokenProvider
from .config import BulkPromptSettings
from .enrichment import ThumbnailEnricher
from .image_generation import GeminiImageGenerator, ImagenPredictGenerator, ImageGenerator
from .pipeline import BulkPromptPipeline
from .storage import GCSThumbnailStorage
from .store import BigQueryPromptStore

logger = logging.getLogger(__name__)


def build_image_generator(settings: BulkPromptSettings) -> ImageGenerator:
    if settings.image_backend == "gemini":
        return GeminiImageGenerator(
            model=settings.gemini_image_model,
            api_key=settings.gemini_api_key,
            project_id=settings.project_id,
            location=settings.location,
        )
    return ImagenPredictGenerator(
        project_id=settings.project_id,
        location=settings.location,
        model=settings.imagen_model,
        timeout=settings.request_timeout_seconds,
    )


def build_enricher(settings: BulkPromptSettings) -> Optional[ThumbnailEnricher]:
    """Thumbnail enricher, or None when no bucket is configured."""
    if not settings.thumbnail_bucket:
        logger.warning("THUMBNAIL_BUCKET not set; thumbnail generation disabled.")
        return None

    generator = build_image_generator(settings)
    token_provider = GoogleAuthTokenProvider() if settings.image_backend == "imagen" else None
    return ThumbnailEnricher(
        generator=generator,
        storage=GCSThumbnailStorage(settings.thumbnail_bucket),
        token_provider=token_provider,
        max_retries=settings.max_retries,
        base_delay=settings.base_delay_seconds,
    )


def build_pipeline(settings: BulkPromptSettings) -> BulkPromptPipeline:
    store = BigQueryPromptStore(
        project_id=settings.project_id,
        dataset_id=settings.dataset_id,
        table_id=settings.prompts_table,
    )
    return BulkPromptPipeline(
        store=store,
        enricher=build_enricher(settings),
        inter_record_delay=settings.inter_record_delay_seconds,
        max_rows=settings.max_rows,
    )
