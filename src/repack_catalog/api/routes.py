"""Read endpoints consumed by the browsing front end."""

from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from repack_catalog.api.dependencies import get_catalog_cache
from repack_catalog.catalog import CatalogCache
from repack_catalog.logger import get_logger

GENERIC_ERROR = "Unable to load the game list"

router = APIRouter(prefix="/api", tags=["catalog"])
logger = get_logger(__name__, component="api")


def parse_limit(raw: str | None, total: int) -> int:
    """Number of entries to return; anything but a positive integer means all."""
    if raw is None:
        return total
    try:
        limit = int(raw.strip())
    except ValueError:
        return total
    return limit if limit > 0 else total


@router.get("/games")
async def list_games(
    limit: str | None = Query(default=None, description="Return at most this many games."),
    cache: CatalogCache = Depends(get_catalog_cache),
) -> Any:
    """Return the catalog, newest first, optionally truncated."""
    try:
        entries = await cache.get()
        selected = entries[: parse_limit(limit, len(entries))]
        return [entry.to_document() for entry in selected]
    except Exception as e:  # noqa: BLE001
        logger.exception("Failed to serve games", error=str(e))
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})


@router.get("/health")
async def health() -> dict[str, str]:
    """Return service heartbeat information."""
    return {"status": "ok"}
