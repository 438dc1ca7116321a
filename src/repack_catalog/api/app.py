"""Application factory for the catalog serving API."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from repack_catalog import __version__
from repack_catalog.api import routes
from repack_catalog.api.state import AppState
from repack_catalog.config import Settings, get_settings
from repack_catalog.logger import get_logger

logger = get_logger(__name__, component="api")


def _report_store(state: AppState) -> None:
    size = state.store.size_bytes()
    if size is None:
        logger.warning(
            "No catalog store found, run 'repack-catalog sync' to build it",
            path=str(state.store.path),
        )
    else:
        logger.info(
            "Catalog store found",
            path=str(state.store.path),
            size_mb=round(size / 1024 / 1024, 2),
        )


def create_app(settings: Settings | None = None, *, state: AppState | None = None) -> FastAPI:
    """
    Build and configure the FastAPI application.

    Args:
        settings: Configuration (defaults to the global settings)
        state: Pre-built state, e.g. with a test store (built from settings if None)
    """
    resolved_settings = settings or (state.settings if state else get_settings())
    app_state = state or AppState.from_settings(resolved_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        _report_store(app_state)
        yield
        await app_state.aclose()

    app = FastAPI(title="Repack Catalog API", version=__version__, lifespan=lifespan)
    app.state.app_state = app_state
    app.state.settings = app_state.settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=resolved_settings.server.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(routes.router)

    return app
