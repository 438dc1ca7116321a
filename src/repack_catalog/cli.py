"""
Command-line interface for Repack Catalog.

Runs synchronizations, one-off lookups and the API server. Both the
server's background rebuild and these commands drive the same
CatalogSynchronizer.
"""

import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from repack_catalog.config import get_settings
from repack_catalog.logger import get_logger, setup_logging

logger = get_logger(__name__, component="cli")


class CLIOutput(BaseModel):
    """Structured output for CLI commands."""

    success: bool
    command: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: dict[str, Any] | list[Any] | None = None
    error: str | None = None


def print_json(output: CLIOutput) -> None:
    """Print output as formatted JSON."""
    print(json.dumps(output.model_dump(), indent=2, default=str))


async def cmd_sync(mode_name: str, pages: int | None = None) -> bool:
    """Run a full or incremental synchronization against the configured store."""
    from repack_catalog.catalog import CatalogStore, CatalogSynchronizer, SyncMode
    from repack_catalog.sources import ListingSource, MetadataEnrichmentClient

    settings = get_settings()
    mode = SyncMode(mode_name)
    logger.info("Running sync", mode=mode.value, store=str(settings.store.path))

    async with (
        ListingSource(settings.source, retry_config=settings.retry) as source,
        MetadataEnrichmentClient(settings.igdb, retry_config=settings.retry) as igdb,
    ):
        synchronizer = CatalogSynchronizer(
            CatalogStore(settings.store.path),
            source,
            igdb,
            config=settings.sync,
        )
        report = await synchronizer.run(mode, pages=pages)

    print_json(
        CLIOutput(
            success=report.persisted,
            command="sync" if mode == SyncMode.FULL else "update",
            data=report.summary(),
            error=report.error,
        )
    )
    return report.persisted


async def cmd_pages() -> bool:
    """Detect the number of listing pages."""
    from repack_catalog.sources import ListingSource

    settings = get_settings()
    async with ListingSource(settings.source, retry_config=settings.retry) as source:
        total = await source.discover_page_count()

    print_json(CLIOutput(success=True, command="pages", data={"pages": total}))
    return True


async def cmd_resolve(title: str) -> bool:
    """Look up cover art and release year for one title."""
    from repack_catalog.normalizer import normalize_title
    from repack_catalog.sources import MetadataEnrichmentClient

    settings = get_settings()
    async with MetadataEnrichmentClient(settings.igdb, retry_config=settings.retry) as igdb:
        result = await igdb.resolve(title)
        enabled = igdb.enabled

    print_json(
        CLIOutput(
            success=not result.is_empty,
            command="resolve",
            data={
                "title": title,
                "search_title": normalize_title(title),
                "enrichment_enabled": enabled,
                "image": result.cover_image_url,
                "year": result.release_year,
            },
        )
    )
    return not result.is_empty


async def cmd_test_config() -> bool:
    """Test configuration loading."""
    settings = get_settings()

    print_json(
        CLIOutput(
            success=True,
            command="test-config",
            data={
                "environment": settings.environment,
                "source_base_url": settings.source.base_url,
                "store_path": str(settings.store.path),
                "update_pages": settings.sync.update_pages,
                "rebuild_mode": settings.sync.rebuild_mode,
                "server_port": settings.server.port,
                "igdb_credentials_configured": settings.igdb.has_credentials,
            },
        )
    )
    return True


def cmd_serve() -> None:
    """Start the API server."""
    import uvicorn

    from repack_catalog.api import create_app

    settings = get_settings()
    logger.info("Starting server", host=settings.server.host, port=settings.server.port)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


def print_usage() -> None:
    """Print CLI usage information."""
    usage = """
Repack Catalog CLI
==================

Usage: repack-catalog <command> [arguments]

Commands:
  test-config            Show the effective configuration
  pages                  Detect how many listing pages exist
  resolve <title>        Look up cover art and release year for a title
  sync                   Full sync: crawl every page and rebuild the store
  update [pages]         Incremental sync: add new listings from the first pages
  serve                  Start the HTTP API

Examples:
  repack-catalog update 3
  repack-catalog resolve "Hades v1.38290 [FitGirl Repack]"
"""
    print(usage)


def _parse_pages(args: list[str]) -> int | None:
    if not args:
        return None
    pages = int(args[0])
    if pages < 1:
        raise ValueError("pages must be a positive integer")
    return pages


def main() -> None:
    """Main CLI entry point."""
    load_dotenv()
    setup_logging()

    if len(sys.argv) < 2:
        print_usage()
        sys.exit(1)

    command = sys.argv[1]
    args = sys.argv[2:]

    try:
        if command == "test-config":
            ok = asyncio.run(cmd_test_config())

        elif command == "pages":
            ok = asyncio.run(cmd_pages())

        elif command == "resolve":
            if not args:
                print("Error: title required")
                sys.exit(1)
            ok = asyncio.run(cmd_resolve(" ".join(args)))

        elif command == "sync":
            ok = asyncio.run(cmd_sync("full"))

        elif command == "update":
            ok = asyncio.run(cmd_sync("incremental", _parse_pages(args)))

        elif command == "serve":
            cmd_serve()
            ok = True

        elif command in ("help", "--help", "-h"):
            print_usage()
            ok = True

        else:
            print(f"Unknown command: {command}")
            print_usage()
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.exception("CLI error", error=str(e))
        print_json(CLIOutput(success=False, command=command, error=str(e)))
        sys.exit(1)

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
