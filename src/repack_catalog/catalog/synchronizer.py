"""
Catalog synchronizer.

Reconciles a fresh crawl of the listing site against the persisted
catalog, decides which entries need an IGDB lookup, paces every
outbound call and writes the merged catalog back in one piece.

Two modes share the same merge rules:

- FULL crawls every page and rebuilds the catalog in crawl order.
- INCREMENTAL crawls the first few pages and prepends listings whose
  identifiers are not yet in the catalog. This assumes new repacks
  surface on the first pages; it is an approximation, not a guarantee.

Per-page and per-item outcomes are collected into a SyncReport rather
than raised, so one failed page or lookup never ends a run.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol
from uuid import UUID, uuid4

from repack_catalog.catalog.store import CatalogStore, StoreError
from repack_catalog.config import SyncConfig, get_settings
from repack_catalog.contracts import (
    CatalogEntry,
    EnrichmentResult,
    Identifier,
    ListingRecord,
    PageResult,
)
from repack_catalog.logger import get_logger
from repack_catalog.normalizer import normalize_title
from repack_catalog.utils.pacing import Pacer, PacingConfig

PAGE_PROGRESS_EVERY = 10
ITEM_PROGRESS_EVERY = 50


class ListingProvider(Protocol):
    """What the synchronizer needs from the listing source."""

    async def discover_page_count(self) -> int: ...

    async def fetch_page_result(self, page_number: int) -> PageResult: ...


class TitleResolver(Protocol):
    """What the synchronizer needs from the enrichment client."""

    @property
    def enabled(self) -> bool: ...

    def is_cached(self, raw_title: str) -> bool: ...

    async def resolve(self, raw_title: str) -> EnrichmentResult: ...


class SyncMode(str, Enum):
    """Crawl scope of a run."""

    FULL = "full"
    INCREMENTAL = "incremental"


class SyncStatus(str, Enum):
    """Terminal state of a run."""

    COMPLETED = "completed"  # merged and persisted
    UNSAVED = "unsaved"  # merged, but the store write failed
    ABORTED = "aborted"  # nothing merged, store left untouched


class ItemOutcome(str, Enum):
    """What happened to one catalog entry during a run."""

    PRESERVED = "preserved"
    ENRICHED = "enriched"
    NOT_FOUND = "not_found"
    CARRIED_OVER = "carried_over"


@dataclass
class ItemResult:
    """Outcome for one identifier."""

    identifier: Identifier
    outcome: ItemOutcome
    reason: str | None = None


@dataclass
class SyncReport:
    """Result of a synchronization run."""

    mode: SyncMode
    run_id: UUID = field(default_factory=uuid4)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None
    status: SyncStatus = SyncStatus.COMPLETED
    error: str | None = None
    previous_count: int = 0
    pages_requested: int = 0
    page_results: list[PageResult] = field(default_factory=list)
    listings_found: int = 0
    duplicates_dropped: int = 0
    new_identifiers: list[Identifier] = field(default_factory=list)
    items: list[ItemResult] = field(default_factory=list)
    entries: list[CatalogEntry] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """Check whether the run produced a usable catalog."""
        return self.status != SyncStatus.ABORTED

    @property
    def persisted(self) -> bool:
        return self.status == SyncStatus.COMPLETED

    @property
    def failed_pages(self) -> list[int]:
        return [result.page for result in self.page_results if result.failed]

    @property
    def duration_seconds(self) -> float:
        """Get total duration in seconds."""
        end = self.completed_at or datetime.now(timezone.utc)
        return (end - self.started_at).total_seconds()

    def count(self, outcome: ItemOutcome) -> int:
        return sum(1 for item in self.items if item.outcome == outcome)

    def record(self, identifier: Identifier, outcome: ItemOutcome, reason: str | None = None) -> None:
        self.items.append(ItemResult(identifier=identifier, outcome=outcome, reason=reason))

    def abort(self, reason: str) -> "SyncReport":
        self.status = SyncStatus.ABORTED
        self.error = reason
        self.entries = []
        return self

    def summary(self) -> dict[str, Any]:
        """Counters suitable for logging and CLI output."""
        return {
            "run_id": str(self.run_id),
            "mode": self.mode.value,
            "status": self.status.value,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 2),
            "previous_entries": self.previous_count,
            "pages_requested": self.pages_requested,
            "failed_pages": self.failed_pages,
            "listings_found": self.listings_found,
            "duplicates_dropped": self.duplicates_dropped,
            "new_entries": len(self.new_identifiers),
            "preserved": self.count(ItemOutcome.PRESERVED),
            "enriched": self.count(ItemOutcome.ENRICHED),
            "not_found": self.count(ItemOutcome.NOT_FOUND),
            "carried_over": self.count(ItemOutcome.CARRIED_OVER),
            "total_entries": len(self.entries),
        }


def page_pacing(config: SyncConfig) -> PacingConfig:
    """Pacing for listing site requests."""
    return PacingConfig(
        delay_seconds=config.page_delay_seconds,
        pause_every=config.page_pause_every,
        pause_seconds=config.page_pause_seconds,
    )


def enrichment_pacing(config: SyncConfig) -> PacingConfig:
    """Pacing for IGDB lookups."""
    return PacingConfig(
        delay_seconds=config.enrichment_delay_seconds,
        pause_every=config.enrichment_pause_every,
        pause_seconds=config.enrichment_pause_seconds,
    )


class CatalogSynchronizer:
    """
    Produces the merged catalog from the stored snapshot and a crawl.

    Merge rules, applied per crawled listing:

    - known and already enriched: keep image/year, refresh title/link
    - known but never enriched: look it up again
    - new: look it up

    Runs are serialized: a second ``run()`` waits for the first.

    Example:
        >>> async with ListingSource() as source, MetadataEnrichmentClient() as igdb:
        ...     sync = CatalogSynchronizer(CatalogStore(), source, igdb)
        ...     report = await sync.run(SyncMode.INCREMENTAL)
    """

    def __init__(
        self,
        store: CatalogStore,
        source: ListingProvider,
        resolver: TitleResolver,
        *,
        config: SyncConfig | None = None,
        page_pacer: Pacer | None = None,
        enrichment_pacer: Pacer | None = None,
    ) -> None:
        self._store = store
        self._source = source
        self._resolver = resolver
        self._config = config or get_settings().sync
        self._page_pacer = page_pacer or Pacer(page_pacing(self._config), name="listing_site")
        self._enrichment_pacer = enrichment_pacer or Pacer(
            enrichment_pacing(self._config), name="igdb"
        )
        self._lock = asyncio.Lock()
        self._logger = get_logger(__name__, component="synchronizer")

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run(self, mode: SyncMode, *, pages: int | None = None) -> SyncReport:
        """
        Run one synchronization.

        Args:
            mode: Full or incremental crawl
            pages: Page count for an incremental crawl (defaults to config)

        Returns:
            SyncReport: Outcome, including the merged entries unless aborted
        """
        async with self._lock:
            self._page_pacer.reset()
            self._enrichment_pacer.reset()

            report = SyncReport(mode=mode)
            self._logger.info("Sync started", run_id=str(report.run_id), mode=mode.value)

            if mode == SyncMode.FULL:
                await self._full(report)
            else:
                await self._incremental(report, pages or self._config.update_pages)

            report.completed_at = datetime.now(timezone.utc)
            log = self._logger.error if report.status == SyncStatus.ABORTED else self._logger.info
            log("Sync finished", **report.summary())
            return report

    async def full_sync(self) -> SyncReport:
        return await self.run(SyncMode.FULL)

    async def incremental_sync(self, pages: int | None = None) -> SyncReport:
        return await self.run(SyncMode.INCREMENTAL, pages=pages)

    def _load_previous(self, report: SyncReport) -> list[CatalogEntry] | None:
        try:
            previous = self._store.load()
        except StoreError as e:
            report.abort(f"store unreadable: {e}")
            return None
        report.previous_count = len(previous)
        return previous

    async def _full(self, report: SyncReport) -> None:
        previous = self._load_previous(report)
        if previous is None:
            return

        # The page count lookup is spaced from page 1 but does not count
        # towards the every-N-pages pause.
        total_pages = await self._source.discover_page_count()
        await self._page_pacer.delay()
        self._logger.info("Crawling all pages", pages=total_pages)

        listings = await self._crawl(range(1, total_pages + 1), report)
        if not listings:
            # An empty crawl usually means the site layout changed; keep the old store.
            report.abort("no listings discovered")
            return

        previous_by_id = {entry.identifier: entry for entry in previous}
        entries: list[CatalogEntry] = []

        for index, listing in enumerate(listings, 1):
            existing = previous_by_id.get(listing.identifier)
            if existing is None:
                report.new_identifiers.append(listing.identifier)
            entries.append(await self._merge(listing, existing, report))
            self._log_item_progress(index, len(listings))

        if report.failed_pages:
            # Entries on pages the crawl could not reach stay in the catalog.
            crawled = {listing.identifier for listing in listings}
            for entry in previous:
                if entry.identifier not in crawled:
                    entries.append(entry)
                    report.record(entry.identifier, ItemOutcome.CARRIED_OVER, "page not crawled")

        self._persist(entries, report)

    async def _incremental(self, report: SyncReport, pages: int) -> None:
        previous = self._load_previous(report)
        if previous is None:
            return

        self._logger.info("Checking first pages for new listings", pages=pages)
        listings = await self._crawl(range(1, pages + 1), report)

        known = {entry.identifier for entry in previous}
        new_listings = [listing for listing in listings if listing.identifier not in known]
        report.new_identifiers = [listing.identifier for listing in new_listings]

        self._logger.info(
            "New listings found",
            scraped=len(listings),
            new=len(new_listings),
            titles=[listing.title for listing in new_listings],
        )

        new_entries: list[CatalogEntry] = []
        for index, listing in enumerate(new_listings, 1):
            new_entries.append(await self._merge(listing, None, report))
            self._log_item_progress(index, len(new_listings))

        # Newest first; previously synced entries keep their order.
        self._persist(new_entries + previous, report)

    async def _crawl(self, page_numbers: Iterable[int], report: SyncReport) -> list[ListingRecord]:
        """Fetch pages in order, dropping listings already seen earlier in the crawl."""
        page_numbers = list(page_numbers)
        report.pages_requested = len(page_numbers)
        seen: set[Identifier] = set()
        listings: list[ListingRecord] = []

        for page in page_numbers:
            await self._page_pacer.wait()
            result = await self._source.fetch_page_result(page)
            report.page_results.append(result)

            for listing in result.listings:
                if listing.identifier in seen:
                    report.duplicates_dropped += 1
                    continue
                seen.add(listing.identifier)
                listings.append(listing)

            if page % PAGE_PROGRESS_EVERY == 0:
                self._logger.info(
                    "Crawl progress",
                    page=page,
                    pages=len(page_numbers),
                    listings=len(listings),
                )

        report.listings_found = len(listings)
        return listings

    async def _merge(
        self,
        listing: ListingRecord,
        existing: CatalogEntry | None,
        report: SyncReport,
    ) -> CatalogEntry:
        display_title = normalize_title(listing.title) or None

        if existing is not None and existing.is_enriched:
            report.record(listing.identifier, ItemOutcome.PRESERVED)
            return existing.refreshed(listing, display_title=display_title)

        enrichment = await self._enrich(listing.title)
        entry = CatalogEntry.from_listing(listing, enrichment, display_title=display_title)

        if entry.is_enriched:
            report.record(listing.identifier, ItemOutcome.ENRICHED)
        else:
            reason = "enrichment disabled" if not self._resolver.enabled else "no match"
            report.record(listing.identifier, ItemOutcome.NOT_FOUND, reason)
        return entry

    async def _enrich(self, title: str) -> EnrichmentResult:
        # Cache hits and disabled lookups make no request, so they are not paced.
        if self._resolver.enabled and not self._resolver.is_cached(title):
            await self._enrichment_pacer.wait()
        return await self._resolver.resolve(title)

    def _persist(self, entries: list[CatalogEntry], report: SyncReport) -> None:
        report.entries = entries
        try:
            self._store.save(entries)
        except StoreError as e:
            self._logger.error("Store write failed, catalog kept in memory only", error=str(e))
            report.status = SyncStatus.UNSAVED
            report.error = str(e)

    def _log_item_progress(self, index: int, total: int) -> None:
        if index % ITEM_PROGRESS_EVERY == 0:
            self._logger.info("Enrichment progress", processed=index, total=total)
