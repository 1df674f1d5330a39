"""Cancellation tokens for DocumentDB calls.

A token is handed to a call by the caller. Firing it (or letting its
deadline pass) aborts the call while it waits out a backoff delay. It never
interrupts an HTTP request that is already in flight.
"""

import asyncio
import time
from typing import Optional


class CancellationToken:
    """Caller-owned cancellation signal with an optional deadline."""

    def __init__(self, timeout: Optional[float] = None):
        """Initialize token.

        Args:
            timeout: Seconds from now after which the token counts as fired
        """
        if timeout is not None and timeout < 0:
            raise ValueError("timeout must be non-negative")
        self._event = asyncio.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "operation cancelled") -> None:
        """Fire the token. Only the first reason is kept."""
        if self.reason is None:
            self.reason = reason
        self._event.set()

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            self.cancel("deadline exceeded")
            return True
        return False

    async def wait(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds for the token to fire.

        Returns:
            True if the token fired (or its deadline passed) first
        """
        if self.cancelled:
            return True

        remaining = self.remaining()
        deadline_first = remaining is not None and remaining <= timeout
        limit = remaining if deadline_first else timeout

        try:
            await asyncio.wait_for(self._event.wait(), timeout=limit)
            return True
        except asyncio.TimeoutError:
            if deadline_first:
                self.cancel("deadline exceeded")
                return True
            return False
