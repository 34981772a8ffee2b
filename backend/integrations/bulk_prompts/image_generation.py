"""
Image generation backends for prompt thumbnails.

Two backends share one contract: ``generate(prompt, token)`` returns an
ImagePayload, returns None when the response carries no image bytes, and
raises ImageGenerationError for any failed request. Retry decisions are made
by the caller from the error's status code and message.
"""

import base64
import logging
from typing import Optional, Protocol

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .models import ImagePayload

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429
RATE_LIMIT_MARKERS = ("RESOURCE_EXHAUSTED", "quota")


class ImageGenerationError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_rate_limited(self) -> bool:
        if self.status_code == RATE_LIMIT_STATUS:
            return True
        message = str(self)
        if any(marker in message for marker in RATE_LIMIT_MARKERS):
            return True
        # Message text is only trusted for a status code when none was reported
        return self.status_code is None and "429" in message


class ImageGenerator(Protocol):
    model: str

    async def generate(self, prompt: str, token: Optional[str] = None) -> Optional[ImagePayload]:
        """Request exactly one image for ``prompt``."""


class ImagenPredictGenerator:
    """Vertex AI Imagen through the REST ``:predict`` endpoint."""

    def __init__(
        self,
        project_id: str,
        location: str = "us-central1",
        model: str = "imagen-3.0-generate-002",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 120.0,
    ) -> None:
        self.project_id = project_id
        self.location = location
        self.model = model
        self.client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def endpoint(self) -> str:
        return (
            f"https://{self.location}-aiplatform.googleapis.com/v1/projects/{self.project_id}"
            f"/locations/{self.location}/publishers/google/models/{self.model}:predict"
        )

    async def generate(self, prompt: str, token: Optional[str] = None) -> Optional[ImagePayload]:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        body = {
            "instances": [{"prompt": prompt}],
            "parameters": {"sampleCount": 1, "aspectRatio": "1:1"},
        }

        try:
            response = await self.client.post(self.endpoint, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise ImageGenerationError(f"Imagen request failed: {exc}") from exc

        if response.status_code != 200:
            raise ImageGenerationError(
                f"Imagen returned HTTP {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
            )

        predictions = response.json().get("predictions") or []
        if not predictions or not predictions[0].get("bytesBase64Encoded"):
            logger.warning(
                "No image data in Imagen response",
                extra={"prediction_count": len(predictions)},
            )
            return None

        prediction = predictions[0]
        return ImagePayload(
            data=base64.b64decode(prediction["bytesBase64Encoded"]),
            mime_type=prediction.get("mimeType") or "image/png",
        )


class GeminiImageGenerator:
    """Gemini image model through the google-genai SDK."""

    def __init__(
        self,
        model: str = "gemini-2.5-flash-image",
        client: Optional[genai.Client] = None,
        api_key: Optional[str] = None,
        project_id: Optional[str] = None,
        location: str = "us-central1",
    ) -> None:
        self.model = model
        if client is None:
            if api_key:
                client = genai.Client(api_key=api_key)
            else:
                client = genai.Client(vertexai=True, project=project_id, location=location)
        self.client = client

    async def generate(self, prompt: str, token: Optional[str] = None) -> Optional[ImagePayload]:
        # The SDK authenticates on its own; the bearer token is not needed here.
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE", "TEXT"],
                    candidate_count=1,
                ),
            )
        except genai_errors.APIError as exc:
            raise ImageGenerationError(str(exc), status_code=exc.code) from exc

        for candidate in response.candidates or []:
            parts = candidate.content.parts if candidate.content else None
            for part in parts or []:
                if part.inline_data and part.inline_data.data:
                    return ImagePayload(
                        data=part.inline_data.data,
                        mime_type=part.inline_data.mime_type or "image/png",
                    )

        logger.warning(
            "No image data returned from Gemini",
            extra={"candidate_count": len(response.candidates or [])},
        )
        return None
