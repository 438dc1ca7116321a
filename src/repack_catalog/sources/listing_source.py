"""
Listing source adapter for the repack site's A-Z index.

Fetches paginated listing pages and parses them into ListingRecords,
and detects how many pages the index has. Pure I/O and parsing: no
caching, no pacing (the synchronizer paces calls).
"""

import re
from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx
from bs4 import BeautifulSoup
from pydantic import ValidationError as PydanticValidationError

from repack_catalog.config import RetryConfig, SourceConfig, get_settings
from repack_catalog.contracts import ListingRecord, PageResult
from repack_catalog.normalizer import derive_identifier
from repack_catalog.sources.base import BaseClient, SourceError

LISTING_SELECTOR = "#lcp_instance_0 li a, .lcp_catlist li a"
PAGINATION_SELECTOR = ".lcp_paginator a, .pagination a"


class ListingSource(BaseClient):
    """
    Adapter for the paginated repack listing.

    Example:
        >>> async with ListingSource() as source:
        ...     total = await source.discover_page_count()
        ...     listings = await source.fetch_page(1)
    """

    def __init__(
        self,
        config: SourceConfig | None = None,
        *,
        retry_config: RetryConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the listing source.

        Args:
            config: Site configuration (uses global settings if None)
            retry_config: Custom retry configuration
            http_client: Pre-built httpx client (tests)
        """
        self._config = config or get_settings().source
        super().__init__(
            retry_config=retry_config,
            timeout=self._config.timeout_seconds,
            http_client=http_client,
        )

    @property
    def source_name(self) -> str:
        """Return source identifier."""
        return "listing_site"

    @property
    def default_headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        return {**super().default_headers, "Accept": "text/html,application/xhtml+xml"}

    def page_url(self, page_number: int) -> str:
        """Build the URL of a listing page."""
        if page_number <= 1:
            return self._config.base_url
        return f"{self._config.base_url}?{self._config.page_param}={page_number}"

    async def _get_html(self, page_number: int) -> str:
        response = await self._make_request("GET", self.page_url(page_number))
        return response.text

    def parse_listings(self, html: str) -> list[ListingRecord]:
        """
        Parse the title/link pairs of one listing page.

        Anchors without text or href are skipped, as are anchors whose
        identifier cannot be derived.
        """
        soup = BeautifulSoup(html, "html.parser")
        listings: list[ListingRecord] = []

        for anchor in soup.select(LISTING_SELECTOR):
            title = " ".join(anchor.get_text().split())
            href = anchor.get("href")
            if not title or not isinstance(href, str) or not href.strip():
                continue

            href = href.strip()
            try:
                listings.append(
                    ListingRecord(
                        identifier=derive_identifier(href, title),
                        title=title,
                        source_url=href,
                    )
                )
            except PydanticValidationError:
                self._logger.debug("Skipping unusable listing", title=title, href=href)

        return listings

    def parse_page_count(self, html: str) -> int | None:
        """
        Read the highest page number from the pagination markers.

        Both link targets (``?lcp_page0=N``) and link texts are
        considered.

        Returns:
            int | None: Highest page number, or None if no markers exist
        """
        soup = BeautifulSoup(html, "html.parser")
        highest: int | None = None

        for anchor in soup.select(PAGINATION_SELECTOR):
            candidates: list[int] = []

            href = anchor.get("href")
            if isinstance(href, str):
                values = parse_qs(urlparse(href).query).get(self._config.page_param, [])
                candidates.extend(int(v) for v in values if v.isdigit())

            text = anchor.get_text(strip=True)
            if re.fullmatch(r"\d+", text):
                candidates.append(int(text))

            for number in candidates:
                if highest is None or number > highest:
                    highest = number

        return highest

    async def fetch_page_result(self, page_number: int) -> PageResult:
        """
        Fetch one listing page, capturing failure as a value.

        Args:
            page_number: 1-based page number

        Returns:
            PageResult: Listings found, or an empty result with the error
        """
        try:
            html = await self._get_html(page_number)
        except (SourceError, httpx.HTTPError) as e:
            self._logger.error("Page fetch failed", page=page_number, error=str(e))
            return PageResult(page=page_number, error=str(e) or e.__class__.__name__)

        listings = self.parse_listings(html)
        self._logger.debug("Page fetched", page=page_number, listings=len(listings))
        return PageResult(page=page_number, listings=listings)

    async def fetch_page(self, page_number: int) -> list[ListingRecord]:
        """Fetch one listing page; a failed fetch yields no listings."""
        result = await self.fetch_page_result(page_number)
        return result.listings

    async def discover_page_count(self) -> int:
        """
        Detect the total number of listing pages.

        Falls back to the last known page count when page 1 cannot be
        fetched or carries no pagination markers.
        """
        fallback = self._config.fallback_page_count
        try:
            html = await self._get_html(1)
        except (SourceError, httpx.HTTPError) as e:
            self._logger.error(
                "Page count detection failed",
                error=str(e),
                fallback=fallback,
            )
            return fallback

        count = self.parse_page_count(html)
        if count is None:
            self._logger.warning("No pagination markers found", fallback=fallback)
            return fallback

        self._logger.info("Detected page count", pages=count)
        return count

    async def __aenter__(self) -> "ListingSource":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()
