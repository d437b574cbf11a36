"""Caller-controlled cancellation for logical requests.

A :class:`CancellationToken` is handed to a request through its
options. Cancelling it, explicitly or by letting its deadline pass,
aborts the in-flight attempt and prevents any further retry.
"""

import asyncio
import time
from typing import Optional


class CancellationToken:
    """Cancellation signal with an optional deadline.

    :param timeout: Seconds from creation after which the token
                    cancels itself
    :type timeout: Optional[float]

    .. example::
       >>> token = CancellationToken(timeout=10)
       >>> await client.get("/certificates", cancel_token=token)
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = asyncio.Event()
        self._deadline: Optional[float] = (
            time.monotonic() + timeout if timeout is not None else None
        )
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled by caller") -> None:
        """Request cancellation. Later calls keep the first reason."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested or the deadline passed."""
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel("deadline exceeded")
            return True
        return False

    @property
    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        remaining = self.remaining
        if remaining is None:
            await self._event.wait()
            return
        try:
            await asyncio.wait_for(self._event.wait(), remaining)
        except asyncio.TimeoutError:
            pass
        self.cancel("deadline exceeded")
