"""PLEX HTTP Client.

Low-level HTTP client for PLEX ERP API calls.
Handles authentication headers, retries, and error handling.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import aiohttp

from connectors.erp_base import ERPTransportError

logger = logging.getLogger(__name__)


class PlexApiError(ERPTransportError):
    """Base exception for PLEX API errors."""
    pass


class PlexAuthenticationError(PlexApiError):
    """Authentication failed (401/403)."""
    pass


class PlexNotFoundError(PlexApiError):
    """Resource not found (404)."""
    pass


class PlexRateLimitError(PlexApiError):
    """Rate limit exceeded (429)."""
    def __init__(self, message: str, retry_after: int = 60):
        super().__init__(message, 429)
        self.retry_after = retry_after


class PlexValidationError(PlexApiError):
    """Validation error from PLEX (400/422)."""
    pass


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    exponential_base: float = 2.0
    retry_on_status: Tuple[int, ...] = (429, 500, 502, 503, 504)

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for retry attempt (exponential backoff)."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)


@dataclass
class PlexApiConfig:
    """Configuration for the PLEX API client."""
    base_url: str
    api_key: str
    client_id: str
    retry_config: RetryConfig = field(default_factory=RetryConfig)
    timeout_seconds: int = 30

    def build_url(self, endpoint: str) -> str:
        return f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"


class PlexApiClient:
    """HTTP client for the PLEX API.

    Usage:
        client = PlexApiClient(api_config)
        await client.connect()
        jobs = await client.request("GET", "/jobs")
    """

    def __init__(self, api_config: PlexApiConfig):
        self.api_config = api_config
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> None:
        """Initialize the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession()

    async def disconnect(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_config.api_key}",
            "X-Client-ID": self.api_config.client_id,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Any] = None,
    ) -> Any:
        """Make an authenticated API request with automatic retries.

        Args:
            method: HTTP method
            endpoint: API endpoint, e.g. "/inventory/PART-001"
            data: JSON request body

        Returns:
            Decoded response JSON (None for empty bodies)

        Raises:
            PlexAuthenticationError: Authentication failed
            PlexNotFoundError: Resource not found
            PlexRateLimitError: Rate limit exceeded after retries
            PlexValidationError: Request rejected by PLEX
            PlexApiError: Other API or transport errors
        """
        if not self._session:
            raise PlexApiError("Not connected. Call connect() first.")

        url = self.api_config.build_url(endpoint)
        retry_config = self.api_config.retry_config
        timeout = aiohttp.ClientTimeout(total=self.api_config.timeout_seconds)
        last_error: Optional[Exception] = None

        for attempt in range(retry_config.max_retries + 1):
            try:
                async with self._session.request(
                    method,
                    url,
                    headers=self._get_headers(),
                    json=data,
                    timeout=timeout,
                ) as response:
                    response_text = await response.text()

                    if response.status < 400:
                        if response.status == 204 or not response_text:
                            return None
                        return json.loads(response_text)

                    if response.status in (401, 403):
                        raise PlexAuthenticationError(
                            f"Authentication failed: {response_text}",
                            response.status,
                            response_text,
                        )

                    if response.status == 404:
                        raise PlexNotFoundError(
                            f"Resource not found: {url}",
                            response.status,
                            response_text,
                        )

                    if response.status in (400, 422):
                        raise PlexValidationError(
                            f"Validation error: {response_text}",
                            response.status,
                            response_text,
                        )

                    if response.status == 429:
                        retry_after = int(response.headers.get("Retry-After", 60))
                        if attempt < retry_config.max_retries:
                            logger.warning(f"Rate limited, waiting {retry_after}s...")
                            await asyncio.sleep(min(retry_after, retry_config.max_delay))
                            continue
                        raise PlexRateLimitError("Rate limit exceeded", retry_after)

                    if response.status in retry_config.retry_on_status:
                        if attempt < retry_config.max_retries:
                            delay = retry_config.get_delay(attempt)
                            logger.warning(
                                f"PLEX request failed with {response.status}, "
                                f"retrying in {delay:.1f}s (attempt {attempt + 1}/{retry_config.max_retries})"
                            )
                            await asyncio.sleep(delay)
                            continue

                    raise PlexApiError(
                        f"PLEX API Error: {response.status} {response.reason}",
                        response.status,
                        response_text,
                    )

            except PlexApiError:
                raise
            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                last_error = e
                if attempt < retry_config.max_retries:
                    delay = retry_config.get_delay(attempt)
                    logger.warning(
                        f"PLEX request failed with {type(e).__name__}: {e}, "
                        f"retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise PlexApiError(f"Request failed after {retry_config.max_retries} retries: {e}") from e

        raise PlexApiError(f"Request failed: {last_error}")
