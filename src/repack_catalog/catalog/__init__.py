"""
Catalog management.

Handles persistence of the merged catalog, its daily read cache,
and synchronization against the listing site and IGDB.
"""

from repack_catalog.catalog.cache import CatalogCache
from repack_catalog.catalog.store import CatalogStore, StoreError
from repack_catalog.catalog.synchronizer import (
    CatalogSynchronizer,
    ItemOutcome,
    ItemResult,
    SyncMode,
    SyncReport,
    SyncStatus,
)

__all__ = [
    "CatalogCache",
    "CatalogStore",
    "CatalogSynchronizer",
    "ItemOutcome",
    "ItemResult",
    "StoreError",
    "SyncMode",
    "SyncReport",
    "SyncStatus",
]
