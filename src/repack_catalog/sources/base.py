"""
Base HTTP client with retry logic and error handling.

Shared by the listing source adapter and the metadata enrichment
client: owns the httpx client, applies tenacity retries with
exponential backoff and maps HTTP failures to typed errors.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

import httpx
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from repack_catalog.config import RetryConfig, get_settings
from repack_catalog.logger import get_logger

USER_AGENT = "Mozilla/5.0 (compatible; RepackCatalog/0.1)"


class SourceError(Exception):
    """Base exception for outbound request failures."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        endpoint: str | None = None,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.endpoint = endpoint
        self.status_code = status_code
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)


class RateLimitError(SourceError):
    """Raised when the upstream answers 429."""

    pass


class APIError(SourceError):
    """Raised when the upstream returns an error response."""

    pass


class BaseClient(ABC):
    """
    Abstract base class for upstream clients.

    Provides common functionality including:
    - HTTP client management (own client, or one injected for tests)
    - Retry logic with exponential backoff
    - Structured logging

    Subclasses must implement ``source_name``.
    """

    component = "source"

    def __init__(
        self,
        *,
        retry_config: RetryConfig | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            retry_config: Custom retry configuration (uses defaults if None)
            timeout: HTTP request timeout in seconds
            http_client: Pre-built httpx client; not closed by ``close()``
        """
        self._retry_config = retry_config or get_settings().retry
        self._timeout = timeout or 30.0
        self._logger = get_logger(
            self.__class__.__name__,
            component=self.component,
            source=self.source_name,
        )
        self._client = http_client
        self._owns_client = http_client is None

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return identifier for this upstream."""
        ...

    @property
    def default_headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        return {"User-Agent": USER_AGENT}

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
                headers=self.default_headers,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close HTTP client and release resources."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "BaseClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    def _create_retry_decorator(self) -> Any:
        """Create retry decorator with current configuration."""
        return retry(
            retry=retry_if_exception_type((httpx.TransportError, APIError)),
            stop=stop_after_attempt(self._retry_config.max_attempts),
            wait=wait_exponential(
                multiplier=self._retry_config.base_delay_seconds,
                max=self._retry_config.max_delay_seconds,
                exp_base=self._retry_config.exponential_base,
            ),
            before_sleep=self._log_retry_attempt,
            reraise=False,
        )

    def _log_retry_attempt(self, retry_state: Any) -> None:
        """Log retry attempts for observability."""
        self._logger.warning(
            "Retrying request",
            attempt=retry_state.attempt_number,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
            exception=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _make_request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Request URL
            **kwargs: Additional arguments passed to httpx

        Returns:
            httpx.Response: Successful response

        Raises:
            RateLimitError: If the upstream answered 429
            SourceError: If the request failed after all retries
        """
        retry_decorator = self._create_retry_decorator()

        @retry_decorator
        async def _request() -> httpx.Response:
            self._logger.debug("Making request", method=method, url=url)

            response = await self.client.request(method, url, **kwargs)

            if response.status_code == 429:
                retry_after = response.headers.get("Retry-After", "60")
                raise RateLimitError(
                    f"Rate limit exceeded. Retry after {retry_after}s",
                    source=self.source_name,
                    endpoint=url,
                    status_code=429,
                )

            if response.status_code >= 400:
                raise APIError(
                    f"API error: {response.status_code}",
                    source=self.source_name,
                    endpoint=url,
                    status_code=response.status_code,
                )

            return response

        try:
            return await _request()  # type: ignore[no-any-return]
        except RetryError as e:
            last = e.last_attempt.exception()
            self._logger.error(
                "Request failed after retries",
                url=url,
                attempts=self._retry_config.max_attempts,
                error=str(last),
            )
            raise SourceError(
                f"Request failed after {self._retry_config.max_attempts} attempts: {last}",
                source=self.source_name,
                endpoint=url,
                status_code=getattr(last, "status_code", None),
                original_error=e,
            ) from e
