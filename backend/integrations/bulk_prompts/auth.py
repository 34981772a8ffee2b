import asyncio
import logging
from typing import Protocol

import google.auth
from google.auth.transport.requests import Request

logger = logging.getLogger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class TokenProvider(Protocol):
    async def get_token(self) -> str:
        """Return a short-lived bearer token."""


class GoogleAuthTokenProvider:
    """Bearer tokens from Application Default Credentials."""

    def __init__(self, credentials=None) -> None:
        self._credentials = credentials

    def _refresh_sync(self) -> str:
        if self._credentials is None:
            self._credentials, _ = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
        if not self._credentials.valid:
            self._credentials.refresh(Request())
            logger.debug("Refreshed Google access token")
        return self._credentials.token

    async def get_token(self) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._refresh_sync)
