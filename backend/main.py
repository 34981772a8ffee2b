"""
Cloud Run API for bulk prompt uploads.

Exposes the bulk prompt pipeline over HTTP. Authentication happens upstream;
the caller's user id arrives in the X-User-Id header, which the gateway must
set after verifying the caller. Admins are listed in BULK_ADMIN_USER_IDS.
"""

import logging
import os

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from integrations.bulk_prompts.config import BulkPromptSettings
from integrations.bulk_prompts.factory import build_pipeline
from integrations.bulk_prompts.router import get_bulk_prompts_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Bulk Prompts API",
    description="Bulk prompt creation with generated thumbnails",
    version="1.0.0"
)

allowed_origins = [
    origin.strip()
    for origin in os.environ.get("CORS_ALLOWED_ORIGINS", "http://localhost:4200").split(",")
    if origin.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

try:
    settings = BulkPromptSettings()
    pipeline = build_pipeline(settings)
    app.include_router(
        get_bulk_prompts_router(pipeline=pipeline, admin_user_ids=settings.admin_user_ids)
    )
    logger.info(
        f"Bulk prompt route registered (project={settings.project_id}, "
        f"thumbnails={'on' if pipeline.enricher else 'off'})."
    )
except Exception as exc:
    logger.warning(
        "Bulk prompt settings not configured; bulk prompt route disabled.",
        exc_info=exc,
    )


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "bulk_prompts",
        "version": "1.0.0"
    }


@app.get("/health")
async def health():
    """Health check endpoint for Cloud Run."""
    return {"status": "healthy"}


if __name__ == "__main__":
    # For local development
    port = int(os.environ.get("PORT", 8080))
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=True,
        log_level="info"
    )
