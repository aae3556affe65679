"""
Exponential backoff for the dispatch poll loop.

Grows the delay between polls while the queue stays empty (or the
gateway is refusing sends) and snaps back after a delivery is claimed.
"""

import random


class ExponentialBackoff:
    """
    Exponential backoff with jitter.

    Delay is ``min(base * multiplier**attempt, max_delay)`` plus or minus
    ``jitter_range`` of itself. ``reset()`` zeroes the attempt counter.

    Usage:
        backoff = ExponentialBackoff(base_delay=1.0, max_delay=30.0)
        while running:
            if await poll_once():
                backoff.reset()
            else:
                await asyncio.sleep(backoff.next_delay())
    """

    def __init__(
        self,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        multiplier: float = 2.0,
        jitter_range: float = 0.25,
    ):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self.jitter_range = jitter_range
        self._attempt = 0

    @property
    def attempt(self) -> int:
        """Consecutive idle polls since the last reset."""
        return self._attempt

    def next_delay(self) -> float:
        """Return the next delay and advance the attempt counter."""
        delay = min(
            self.base_delay * (self.multiplier ** self._attempt),
            self.max_delay,
        )
        if self.jitter_range:
            delay += delay * random.uniform(-self.jitter_range, self.jitter_range)
        self._attempt += 1
        return max(0.0, delay)

    def reset(self) -> None:
        self._attempt = 0
