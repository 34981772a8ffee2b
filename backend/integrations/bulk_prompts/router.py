import logging
from typing import Iterable, Optional

from fastapi import APIRouter, Header, HTTPException

from .errors import (
    BatchRejectedError,
    PermissionDeniedError,
    RecordNotFoundError,
    ThumbnailGenerationFailedError,
    ThumbnailUnavailableError,
)
from .models import BulkCsvRequest, BulkPromptsRequest, ThumbnailResponse
from .pipeline import BulkPromptPipeline

logger = logging.getLogger(__name__)


def _require_actor(user_id: Optional[str]) -> str:
    if not user_id or not user_id.strip():
        raise HTTPException(status_code=401, detail="You must be signed in to create prompts.")
    return user_id.strip()


def get_bulk_prompts_router(
    pipeline: BulkPromptPipeline,
    admin_user_ids: Iterable[str] = (),
) -> APIRouter:
    # Admin rights come from configuration, never from request headers
    admins = frozenset(user_id.strip() for user_id in admin_user_ids if user_id.strip())
    router = APIRouter(prefix="/bulk-prompts", tags=["bulk-prompts"])

    @router.post("")
    async def create_prompts(
        request: BulkPromptsRequest,
        x_user_id: Optional[str] = Header(None),
    ):
        """Create prompts from a list of prompt objects."""
        actor_id = _require_actor(x_user_id)
        try:
            job = await pipeline.run_batch(request.prompts, request.auto_thumbnail, actor_id)
        except BatchRejectedError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return job.model_dump(by_alias=True, exclude_none=True)

    @router.post("/csv")
    async def create_prompts_from_csv(
        request: BulkCsvRequest,
        x_user_id: Optional[str] = Header(None),
    ):
        """Create prompts from CSV text (header row first)."""
        actor_id = _require_actor(x_user_id)
        try:
            job = await pipeline.run_batch(request.csv, request.auto_thumbnail, actor_id)
        except BatchRejectedError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return job.model_dump(by_alias=True, exclude_none=True)

    @router.post("/{record_id}/thumbnail", response_model=ThumbnailResponse, response_model_by_alias=True)
    async def generate_thumbnail(
        record_id: str,
        x_user_id: Optional[str] = Header(None),
    ):
        """Generate or replace the thumbnail of an existing prompt."""
        actor_id = _require_actor(x_user_id)
        if not record_id.strip():
            raise HTTPException(status_code=400, detail="A prompt ID is required.")

        try:
            entry = await pipeline.regenerate_thumbnail(record_id, actor_id, is_admin=actor_id in admins)
        except RecordNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except PermissionDeniedError as exc:
            raise HTTPException(status_code=403, detail=str(exc))
        except ThumbnailUnavailableError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        except ThumbnailGenerationFailedError as exc:
            logger.error(f"Thumbnail generation failed for prompt {record_id}: {exc}")
            raise HTTPException(status_code=500, detail=str(exc))

        return ThumbnailResponse(prompt_id=entry.record_id, image_url=entry.image_url)

    return router
