"""Tests for the asyncio timer service."""

import asyncio

import pytest

from catalog_search.infrastructure.timers import AsyncioTimerService


class TestAsyncioTimerService:
    """Tests for AsyncioTimerService."""

    @pytest.mark.asyncio
    async def test_callback_fires_after_delay(self) -> None:
        """Scheduled callbacks run once the delay has passed."""
        fired: list[str] = []
        AsyncioTimerService().schedule(lambda: fired.append("x"), 0.01)
        assert fired == []
        await asyncio.sleep(0.05)
        assert fired == ["x"]

    @pytest.mark.asyncio
    async def test_cancelled_callback_does_not_fire(self) -> None:
        """Cancelled timers never run."""
        fired: list[str] = []
        handle = AsyncioTimerService().schedule(lambda: fired.append("x"), 0.01)
        handle.cancel()
        await asyncio.sleep(0.05)
        assert fired == []
