"""Shared fixtures and fakes for the test suite."""

from typing import Any

import pytest

from repack_catalog.config import IGDBConfig, RetryConfig, SourceConfig, SyncConfig
from repack_catalog.contracts import EnrichmentResult, ListingRecord, PageResult
from repack_catalog.utils.pacing import Pacer, PacingConfig


def make_listing(identifier: str, title: str | None = None) -> ListingRecord:
    """Listing whose URL ends in the identifier, like the real site."""
    return ListingRecord(
        identifier=identifier,
        title=title or identifier.replace("-", " ").title(),
        source_url=f"https://repacks.example/{identifier}/",
    )


class FakeListingSource:
    """In-memory listing source; a page mapped to an exception fails."""

    def __init__(
        self,
        pages: dict[int, list[ListingRecord] | Exception],
        *,
        page_count: int | None = None,
    ) -> None:
        self.pages = pages
        self.page_count = page_count if page_count is not None else max(pages, default=1)
        self.fetched: list[int] = []

    async def discover_page_count(self) -> int:
        return self.page_count

    async def fetch_page_result(self, page_number: int) -> PageResult:
        self.fetched.append(page_number)
        page = self.pages.get(page_number, [])
        if isinstance(page, Exception):
            return PageResult(page=page_number, error=str(page))
        return PageResult(page=page_number, listings=list(page))


class FakeResolver:
    """Resolver returning canned results and recording every lookup."""

    def __init__(
        self,
        results: dict[str, EnrichmentResult] | None = None,
        *,
        enabled: bool = True,
    ) -> None:
        self.results = results or {}
        self.enabled = enabled
        self.calls: list[str] = []

    def is_cached(self, raw_title: str) -> bool:
        return False

    async def resolve(self, raw_title: str) -> EnrichmentResult:
        self.calls.append(raw_title)
        if not self.enabled:
            return EnrichmentResult.empty()
        return self.results.get(raw_title, EnrichmentResult.empty())


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> Any:
        self.delays.append(seconds)


@pytest.fixture
def retry_config() -> RetryConfig:
    """Single attempt, no backoff."""
    return RetryConfig(max_attempts=1, base_delay_seconds=0.0, max_delay_seconds=0.0)


@pytest.fixture
def igdb_config() -> IGDBConfig:
    return IGDBConfig(client_id="test-client", client_secret="test-secret")


@pytest.fixture
def source_config() -> SourceConfig:
    return SourceConfig(base_url="https://repacks.example/all-my-repacks-a-z/")


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig(
        update_pages=2,
        page_delay_seconds=0.0,
        page_pause_seconds=0.0,
        enrichment_delay_seconds=0.0,
        enrichment_pause_seconds=0.0,
    )


@pytest.fixture
def no_wait_pacer() -> Pacer:
    return Pacer(PacingConfig(delay_seconds=0.0, pause_every=0, pause_seconds=0.0))
