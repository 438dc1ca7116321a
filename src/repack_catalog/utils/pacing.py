"""
Request pacing for outbound calls.

The listing site and IGDB both block aggressive clients. Calls are
issued one at a time with a fixed delay between them and a longer
pause after every N calls, trading wall-clock time for not being
throttled.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from repack_catalog.logger import get_logger

Sleeper = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class PacingConfig:
    """Configuration for a pacer."""

    delay_seconds: float = 0.5
    pause_every: int = 10
    pause_seconds: float = 2.0


@dataclass
class Pacer:
    """
    Spaces sequential calls to one upstream service.

    ``wait()`` is awaited before each call. The first call goes out
    immediately; after that every call waits ``delay_seconds``, except
    that once ``pause_every`` calls have completed the wait is
    ``pause_seconds`` instead.

    Example:
        >>> pacer = Pacer(PacingConfig(delay_seconds=0.5, pause_every=10))
        >>> for page in pages:
        ...     async with pacer:
        ...         await fetch(page)
    """

    config: PacingConfig
    name: str = "default"
    sleep: Sleeper = asyncio.sleep
    _calls: int = field(init=False, default=0)
    _logger: Any = field(init=False)

    def __post_init__(self) -> None:
        """Initialize pacer state."""
        self._logger = get_logger(__name__, component="pacer", pacer=self.name)

    def next_delay(self) -> float:
        """Delay owed before the next call."""
        if self._calls == 0:
            return 0.0
        every = self.config.pause_every
        if every > 0 and self._calls % every == 0:
            return self.config.pause_seconds
        return self.config.delay_seconds

    async def wait(self) -> None:
        """Sleep for the owed delay and count the call that follows."""
        delay = self.next_delay()
        if delay > 0:
            if delay == self.config.pause_seconds and delay != self.config.delay_seconds:
                self._logger.debug("Pausing", seconds=delay, calls=self._calls)
            await self.sleep(delay)
        self._calls += 1

    async def delay(self) -> None:
        """Sleep the plain delay without counting a call."""
        if self.config.delay_seconds > 0:
            await self.sleep(self.config.delay_seconds)

    def reset(self) -> None:
        """Start counting from zero, e.g. at the beginning of a run."""
        self._calls = 0

    @property
    def calls(self) -> int:
        """Number of calls paced so far (for monitoring)."""
        return self._calls

    async def __aenter__(self) -> "Pacer":
        """Wait on context entry."""
        await self.wait()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """No-op on context exit."""
        pass
