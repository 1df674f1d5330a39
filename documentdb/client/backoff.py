"""Exponential backoff with jitter for throttled DocumentDB requests.

Many clients hitting the same throttled partition retry on a randomised
window that doubles with every attempt:

    delay = 2 ** min(retry_count, ceiling) * randint[min_window, 2 * min_window)
"""

import random
from typing import Optional

DEFAULT_CEILING = 8
DEFAULT_MIN_WINDOW_MS = 300


class BackoffPolicy:
    """Computes the delay before the next retry of a throttled request."""

    def __init__(
        self,
        ceiling: int = DEFAULT_CEILING,
        min_window_ms: int = DEFAULT_MIN_WINDOW_MS,
        rng: Optional[random.Random] = None,
    ):
        """Initialize backoff policy.

        Args:
            ceiling: Highest retry count used in the exponent
            min_window_ms: Lower bound of the jitter window in milliseconds
            rng: Random source (a private instance by default)
        """
        if ceiling < 0:
            raise ValueError("ceiling must be non-negative")
        if min_window_ms <= 0:
            raise ValueError("min_window_ms must be positive")
        self.ceiling = ceiling
        self.min_window_ms = min_window_ms
        self._random = rng or random.Random()

    def delay_ms(self, retry_count: int) -> int:
        """Delay in milliseconds for the given retry count."""
        exponent = max(0, min(retry_count, self.ceiling))
        window = self._random.randrange(self.min_window_ms, 2 * self.min_window_ms)
        return (1 << exponent) * window

    def delay(self, retry_count: int) -> float:
        """Delay in seconds for the given retry count."""
        return self.delay_ms(retry_count) / 1000.0

