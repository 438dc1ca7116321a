"""
Upstream clients.

The listing source adapter and the IGDB enrichment client, both
built on a common base with retry logic and structured logging.
"""

from repack_catalog.sources.base import (
    APIError,
    BaseClient,
    RateLimitError,
    SourceError,
)
from repack_catalog.sources.igdb_client import (
    MetadataEnrichmentClient,
    TitleResultCache,
    TokenCache,
)
from repack_catalog.sources.listing_source import ListingSource

__all__ = [
    # Base classes and errors
    "APIError",
    "BaseClient",
    "RateLimitError",
    "SourceError",
    # Clients
    "ListingSource",
    "MetadataEnrichmentClient",
    # Caches
    "TitleResultCache",
    "TokenCache",
]
