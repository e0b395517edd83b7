from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from team_registry.config.settings import settings
from team_registry.models.region import Region

# Define common HTTP status codes that warrant a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class ScraperError(Exception):
    """Custom exception for scraper-related errors."""

    pass


class AccessDeniedError(ScraperError):
    """Exception raised when the source refuses us (401, 403)."""

    pass


class RateLimitError(ScraperError):
    """Exception raised for rate limit errors (429)."""

    pass


class _RetryableStatusError(Exception):
    def __init__(self, response: httpx.Response):
        super().__init__(f"HTTP {response.status_code} on {response.request.url}")
        self.response = response


class BaseScraper(ABC):
    """Abstract base class for ranking page scrapers."""

    source_name: str = "unknown"

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_attempts: Optional[int] = None,
        backoff_multiplier: float = 1.0,
    ):
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.request_timeout_seconds),
            follow_redirects=True,
            headers={
                "User-Agent": settings.user_agent,
                "Accept": "text/html,application/xhtml+xml",
            },
        )
        self.max_attempts = max_attempts or settings.max_request_attempts
        self.backoff_multiplier = backoff_multiplier

    @abstractmethod
    async def fetch_ranking_page(self, region: Region) -> str:
        """Fetch the raw ranking page markup for one region.

        Raises:
            ScraperError: on any transport or HTTP status failure.
        """
        pass

    async def _make_request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> httpx.Response:
        """Makes an asynchronous HTTP request with retry logic.

        Transport errors, 429 and 408/5xx responses are retried with
        exponential backoff. Whatever still fails is raised as ScraperError.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_multiplier, min=0, max=10),
            retry=retry_if_exception_type(
                (httpx.RequestError, RateLimitError, _RetryableStatusError)
            ),
            reraise=False,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._send(method, url, headers, params, **kwargs)
        except RetryError as e:
            # This catches the error after all retries have failed
            cause = e.last_attempt.exception()
            logger.error(
                f"Max retries exceeded for {self.source_name} request to {url}. Last exception: {cause}"
            )
            if isinstance(cause, ScraperError):
                raise cause
            raise ScraperError(
                f"Failed request to {self.source_name} after {self.max_attempts} attempts: {cause}"
            ) from cause
        raise ScraperError(f"No request attempt was made to {url}")

    async def _send(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]],
        params: Optional[Dict[str, Any]],
        **kwargs,
    ) -> httpx.Response:
        logger.debug(f"Making request: {method} {url}")
        try:
            response = await self.client.request(
                method, url, headers=headers, params=params, **kwargs
            )
        except httpx.RequestError as e:
            # Network errors, timeouts etc. - these are retryable
            logger.warning(f"Request error for {self.source_name}, retrying: {e}")
            raise

        if response.status_code in {401, 403}:
            logger.warning(
                f"Access denied ({response.status_code}) by {self.source_name} at {url}."
            )
            # Don't retry, the answer will not change
            raise AccessDeniedError(
                f"Access denied ({response.status_code}) by {self.source_name}"
            )

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            logger.warning(
                f"Rate limit hit (429) for {self.source_name} at {url}. Retry-After: {retry_after}"
            )
            raise RateLimitError(f"Rate limited by {self.source_name}")

        if response.status_code in RETRYABLE_STATUS_CODES:
            logger.warning(
                f"Retrying request for {self.source_name} due to status {response.status_code}"
            )
            raise _RetryableStatusError(response)

        if response.is_error:
            logger.error(
                f"HTTP error during request for {self.source_name}: {response.status_code} on {url}"
            )
            raise ScraperError(f"HTTP {response.status_code} on {url}")

        logger.debug(f"Request successful: {response.status_code} for {url}")
        return response

    async def close(self):
        """Closes the underlying HTTP client."""
        await self.client.aclose()
        logger.debug(f"Closed HTTP client for {self.source_name}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()
