"""Shared state container for the serving API."""

from dataclasses import dataclass

from repack_catalog.catalog import CatalogCache, CatalogStore, CatalogSynchronizer, SyncReport
from repack_catalog.config import Settings
from repack_catalog.sources import ListingSource, MetadataEnrichmentClient


@dataclass
class AppState:
    """Owns the long-lived clients, the synchronizer and the read cache."""

    settings: Settings
    store: CatalogStore
    cache: CatalogCache
    synchronizer: CatalogSynchronizer | None = None
    source: ListingSource | None = None
    igdb: MetadataEnrichmentClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppState":
        """Wire the production components from configuration."""
        store = CatalogStore(settings.store.path)
        source = ListingSource(settings.source, retry_config=settings.retry)
        igdb = MetadataEnrichmentClient(settings.igdb, retry_config=settings.retry)
        synchronizer = CatalogSynchronizer(store, source, igdb, config=settings.sync)

        async def rebuild() -> SyncReport:
            if settings.sync.rebuild_mode == "incremental":
                return await synchronizer.incremental_sync()
            return await synchronizer.full_sync()

        cache = CatalogCache(
            store,
            rebuild=None if settings.sync.rebuild_mode == "none" else rebuild,
        )
        return cls(
            settings=settings,
            store=store,
            cache=cache,
            synchronizer=synchronizer,
            source=source,
            igdb=igdb,
        )

    async def aclose(self) -> None:
        """Stop any background rebuild, then release HTTP clients."""
        await self.cache.cancel_rebuild()
        if self.source is not None:
            await self.source.close()
        if self.igdb is not None:
            await self.igdb.close()
