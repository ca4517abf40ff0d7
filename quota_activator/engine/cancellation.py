import asyncio
from typing import Optional


class CancellationToken:
    """
    One-way cancellation signal shared by the scheduling loop and the action.

    Once cancelled it stays cancelled. `wait()` races a timer against the
    signal, so sleeps end as soon as cancellation is raised.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """Sleep up to `timeout` seconds; return True if cancelled."""
        if self._event.is_set():
            return True
        if timeout is not None and timeout <= 0:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except asyncio.TimeoutError:
            pass
        return self._event.is_set()
