"""Tests for request pacing."""

import pytest
from conftest import RecordingSleep

from repack_catalog.utils.pacing import Pacer, PacingConfig


class TestPacer:
    """Tests for Pacer."""

    @pytest.mark.asyncio
    async def test_first_call_is_immediate(self) -> None:
        sleep = RecordingSleep()
        pacer = Pacer(PacingConfig(delay_seconds=0.5, pause_every=10, pause_seconds=2.0), sleep=sleep)

        await pacer.wait()

        assert sleep.delays == []
        assert pacer.calls == 1

    @pytest.mark.asyncio
    async def test_long_pause_every_n_calls(self) -> None:
        """Listing pages: 0.5s between pages, 2s after every tenth page."""
        sleep = RecordingSleep()
        pacer = Pacer(PacingConfig(delay_seconds=0.5, pause_every=10, pause_seconds=2.0), sleep=sleep)

        for _ in range(21):
            await pacer.wait()

        assert len(sleep.delays) == 20
        assert sleep.delays[9] == 2.0
        assert sleep.delays[19] == 2.0
        assert sleep.delays.count(2.0) == 2
        assert sleep.delays.count(0.5) == 18

    @pytest.mark.asyncio
    async def test_enrichment_schedule(self) -> None:
        """IGDB lookups: a longer pause after every fourth call."""
        sleep = RecordingSleep()
        pacer = Pacer(PacingConfig(delay_seconds=0.25, pause_every=4, pause_seconds=1.0), sleep=sleep)

        for _ in range(9):
            await pacer.wait()

        assert sleep.delays == [0.25, 0.25, 0.25, 1.0, 0.25, 0.25, 0.25, 1.0]

    @pytest.mark.asyncio
    async def test_zero_delays_never_sleep(self) -> None:
        sleep = RecordingSleep()
        pacer = Pacer(PacingConfig(delay_seconds=0.0, pause_every=0, pause_seconds=0.0), sleep=sleep)

        for _ in range(5):
            await pacer.wait()

        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_reset(self) -> None:
        sleep = RecordingSleep()
        pacer = Pacer(PacingConfig(delay_seconds=0.5, pause_every=0, pause_seconds=0.0), sleep=sleep)

        await pacer.wait()
        pacer.reset()
        await pacer.wait()

        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        sleep = RecordingSleep()
        pacer = Pacer(PacingConfig(delay_seconds=0.5, pause_every=0, pause_seconds=0.0), sleep=sleep)

        async with pacer:
            pass
        async with pacer:
            pass

        assert sleep.delays == [0.5]

    @pytest.mark.asyncio
    async def test_plain_delay_is_not_counted(self) -> None:
        sleep = RecordingSleep()
        pacer = Pacer(PacingConfig(delay_seconds=0.5, pause_every=2, pause_seconds=2.0), sleep=sleep)

        await pacer.delay()
        await pacer.wait()
        await pacer.wait()
        await pacer.wait()

        assert sleep.delays == [0.5, 0.5, 2.0]
        assert pacer.calls == 3
