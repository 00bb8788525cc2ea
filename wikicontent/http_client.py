import asyncio
import httpx
from wikicontent.config import DEFAULT_TIMEOUT, RETRY_ATTEMPTS, RETRY_BACKOFF_FACTOR
from wikicontent.logging_setup import logger

def get_async_client() -> httpx.AsyncClient:
    """
    Returns a configured httpx.AsyncClient with HTTP/2 support and default timeouts.
    """
    return httpx.AsyncClient(http2=True, timeout=DEFAULT_TIMEOUT, follow_redirects=True)

async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    semaphore: asyncio.Semaphore,
    attempts: int = RETRY_ATTEMPTS,
    backoff_factor: float = RETRY_BACKOFF_FACTOR,
    **kwargs
) -> httpx.Response:
    """
    GETs a URL with a semaphore for concurrency control and exponential
    backoff on transient errors. Client errors (4xx) are not retried.
    """
    async with semaphore:
        for attempt in range(attempts):
            try:
                response = await client.get(url, **kwargs)
                response.raise_for_status()
                return response

            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                if isinstance(e, httpx.HTTPStatusError) and 400 <= e.response.status_code < 500:
                    logger.error(f"Non-retriable HTTP error for {url}: {e}")
                    raise

                if attempt == attempts - 1:
                    logger.error(f"Final attempt failed for {url}: {e}")
                    raise

                wait_time = backoff_factor * (2 ** attempt)
                logger.warning(
                    f"Attempt {attempt + 1}/{attempts} failed for {url}. "
                    f"Retrying in {wait_time:.2f}s..."
                )
                await asyncio.sleep(wait_time)
        raise RuntimeError("Fetch with retry failed unexpectedly.")
