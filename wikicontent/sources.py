import asyncio
import os
from typing import Optional, Protocol

import httpx

from wikicontent.config import (
    CONTENT_BASE_URL, CONTENT_DATA_DIR, MAX_CONCURRENT_FETCHES, RETRY_ATTEMPTS, RETRY_BACKOFF_FACTOR,
)
from wikicontent.http_client import get_async_client, fetch_with_retry
from wikicontent.logging_setup import logger


class ContentSource(Protocol):
    """Anything that can hand back the raw text of a dataset file."""

    async def fetch(self, filename: str) -> str:
        ...


class FileContentSource:
    """Reads datasets from a local directory without blocking the event loop."""

    def __init__(self, data_dir: str = CONTENT_DATA_DIR):
        self.data_dir = data_dir

    def _read(self, filename: str) -> str:
        path = os.path.join(self.data_dir, filename)
        with open(path, "r", encoding="utf-8") as handle:
            return handle.read()

    async def fetch(self, filename: str) -> str:
        logger.debug("Reading dataset", extra={"path": os.path.join(self.data_dir, filename)})
        return await asyncio.to_thread(self._read, filename)


class HttpContentSource:
    """
    Fetches datasets from a static file host. A single client is shared by all
    fetches and must be closed with `close()` on shutdown.
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        attempts: int = RETRY_ATTEMPTS,
        backoff_factor: float = RETRY_BACKOFF_FACTOR,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = client or get_async_client()
        self.attempts = attempts
        self.backoff_factor = backoff_factor
        self.semaphore = asyncio.Semaphore(MAX_CONCURRENT_FETCHES)

    async def fetch(self, filename: str) -> str:
        url = f"{self.base_url}/{filename}"
        response = await fetch_with_retry(
            self.client, url, self.semaphore, attempts=self.attempts, backoff_factor=self.backoff_factor
        )
        return response.text

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("Content HTTP client closed.")


def get_default_source() -> ContentSource:
    """HTTP when CONTENT_BASE_URL is configured, the local data directory otherwise."""
    if CONTENT_BASE_URL:
        logger.info(f"Using HTTP content source at {CONTENT_BASE_URL}")
        return HttpContentSource(CONTENT_BASE_URL)
    logger.info(f"Using file content source at {CONTENT_DATA_DIR}")
    return FileContentSource(CONTENT_DATA_DIR)
