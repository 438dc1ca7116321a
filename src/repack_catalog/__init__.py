"""
Repack Catalog.

Catalog synchronization engine for game repack listings: crawls the
listing site, enriches entries with IGDB cover art and release year,
persists the merged catalog as JSON and serves it over HTTP.
"""

from repack_catalog.config import Settings, get_settings
from repack_catalog.logger import get_logger, setup_logging

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
