"""HTTP read API for the catalog."""

from repack_catalog.api.app import create_app

__all__ = ["create_app"]
