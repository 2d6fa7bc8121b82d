"""
Time source for the engine

Session timestamps and the expiry timer both go through a Clock so the state
machine can be driven against virtual time.
"""

import asyncio
import time


class Clock:
    """Wall-clock milliseconds plus an awaitable sleep"""

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
