"""FastAPI dependencies for the serving API."""

from fastapi import Depends, Request

from repack_catalog.api.state import AppState
from repack_catalog.catalog import CatalogCache


def get_app_state(request: Request) -> AppState:
    """Resolve the shared application state from the FastAPI request."""
    return request.app.state.app_state


def get_catalog_cache(app_state: AppState = Depends(get_app_state)) -> CatalogCache:
    """Return the catalog read cache."""
    return app_state.cache
