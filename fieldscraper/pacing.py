from __future__ import annotations

import asyncio
from typing import Awaitable, Callable


class RequestPacer:
    """Fixed-delay pacing between attempts and between targets.

    The delay is whatever the caller configured; it never adapts."""

    def __init__(
        self,
        delay_ms: int,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must not be negative")
        self._delay_s = delay_ms / 1000.0
        self._sleep = sleep
        self.waits = 0

    @property
    def delay_seconds(self) -> float:
        return self._delay_s

    async def wait(self) -> None:
        """Suspend for the configured delay."""
        self.waits += 1
        if self._delay_s <= 0:
            return
        await self._sleep(self._delay_s)
