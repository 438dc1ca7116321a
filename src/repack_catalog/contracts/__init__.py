"""
Data contracts for listings, catalog entries and IGDB payloads.

Pydantic models that define the data flowing through the
synchronization pipeline and the document written to disk.
"""

from repack_catalog.contracts.catalog import CatalogEntry, EnrichmentResult
from repack_catalog.contracts.igdb import AccessToken, IGDBCover, IGDBGame, TokenResponse
from repack_catalog.contracts.listing import Identifier, ListingRecord, PageResult

__all__ = [
    "AccessToken",
    "CatalogEntry",
    "EnrichmentResult",
    "IGDBCover",
    "IGDBGame",
    "Identifier",
    "ListingRecord",
    "PageResult",
    "TokenResponse",
]
