import asyncio
from typing import List, Optional


class CancellationToken:
    """
    Cooperative cancellation signal shared between a caller and a run.

    The run checks the token before starting each executor and races the
    in-flight executor against it. Each wait() gets its own event on the
    loop it runs in, so one token can serve runs on different loops.
    """

    def __init__(self):
        self._cancelled = False
        self._reason: Optional[str] = None
        self._waiters: List[asyncio.Event] = []

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str:
        return self._reason or "Run cancelled"

    def cancel(self, reason: Optional[str] = None) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        for waiter in self._waiters:
            waiter.set()

    async def wait(self) -> None:
        """Block until cancel() is called."""
        if self._cancelled:
            return
        waiter = asyncio.Event()
        self._waiters.append(waiter)
        try:
            await waiter.wait()
        finally:
            self._waiters.remove(waiter)
