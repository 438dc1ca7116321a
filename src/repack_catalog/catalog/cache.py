"""
In-process read cache for the catalog.

A cache fill is valid for the calendar day it was made on. The first
read on a later day refills from the store and, when the store itself
was not written today, starts a background rebuild. Readers keep
getting the previous complete snapshot until the rebuild finishes and
its result is swapped in.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime

from repack_catalog.catalog.store import CatalogStore, StoreError
from repack_catalog.catalog.synchronizer import SyncReport
from repack_catalog.contracts import CatalogEntry
from repack_catalog.logger import get_logger

Clock = Callable[[], datetime]
Rebuild = Callable[[], Awaitable[SyncReport]]


def local_now() -> datetime:
    """Current local time, timezone-aware."""
    return datetime.now().astimezone()


class CatalogCache:
    """
    Serves the catalog from memory with daily invalidation.

    Args:
        store: Catalog store to read from
        rebuild: Coroutine function running a sync; None disables rebuilds
        clock: Source of the current local time
    """

    def __init__(
        self,
        store: CatalogStore,
        *,
        rebuild: Rebuild | None = None,
        clock: Clock = local_now,
    ) -> None:
        self._store = store
        self._rebuild = rebuild
        self._clock = clock
        self._entries: list[CatalogEntry] | None = None
        self._filled_at: datetime | None = None
        self._rebuild_task: asyncio.Task[None] | None = None
        self._logger = get_logger(__name__, component="cache")

    @property
    def filled_at(self) -> datetime | None:
        return self._filled_at

    @property
    def rebuilding(self) -> bool:
        return self._rebuild_task is not None and not self._rebuild_task.done()

    def is_fresh(self, now: datetime | None = None) -> bool:
        """Check whether the current fill was made today."""
        if self._entries is None or self._filled_at is None:
            return False
        now = now or self._clock()
        return self._filled_at.date() == now.date()

    def fill(self, entries: list[CatalogEntry], at: datetime | None = None) -> None:
        """Swap in a complete snapshot."""
        self._entries = entries
        self._filled_at = at or self._clock()
        self._logger.info("Cache filled", entries=len(entries), filled_at=self._filled_at.isoformat())

    def invalidate(self) -> None:
        self._entries = None
        self._filled_at = None

    async def get(self) -> list[CatalogEntry]:
        """
        Return the catalog, refreshing it if the fill is from another day.

        Returns:
            list[CatalogEntry]: Current complete snapshot
        """
        now = self._clock()
        if self._entries is not None and self.is_fresh(now):
            return self._entries

        modified = self._store.last_modified()
        try:
            entries = self._store.load()
        except StoreError as e:
            self._logger.error("Store unreadable, serving previous snapshot", error=str(e))
            entries = self._entries if self._entries is not None else []

        self.fill(entries, now)

        if modified is None or modified.date() != now.date():
            self._schedule_rebuild()

        return entries

    def _schedule_rebuild(self) -> None:
        if self._rebuild is None:
            return
        if self.rebuilding:
            self._logger.debug("Rebuild already running")
            return
        self._logger.info("Store is not from today, starting rebuild")
        self._rebuild_task = asyncio.create_task(self._run_rebuild(self._rebuild))

    async def _run_rebuild(self, rebuild: Rebuild) -> None:
        try:
            report = await rebuild()
        except Exception as e:  # noqa: BLE001
            self._logger.exception("Rebuild failed", error=str(e))
            return

        if not report.succeeded:
            self._logger.warning("Rebuild aborted, keeping previous snapshot", error=report.error)
            return
        self.fill(report.entries)

    async def wait_for_rebuild(self) -> None:
        """Block until a running rebuild (if any) has finished."""
        if self._rebuild_task is not None:
            await self._rebuild_task

    async def cancel_rebuild(self) -> None:
        """Stop a running rebuild and wait for it to unwind, e.g. on shutdown."""
        task = self._rebuild_task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            self._logger.info("Rebuild cancelled, keeping previous snapshot")
