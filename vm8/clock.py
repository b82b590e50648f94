"""Cycle pacing for the vm8 processor."""

import logging
import time
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

CLOCK_HZ = 16.0

T = TypeVar("T")


class Clock:
    """Paces work to a fixed period by sleeping off the unused budget.

    A cycle that overruns the period is followed immediately by the next
    one; lost time is never made up.
    """

    def __init__(
        self,
        hz: float = CLOCK_HZ,
        enabled: bool = True,
        now: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if hz <= 0:
            raise ValueError(f"Clock frequency must be positive: {hz}")
        self.hz = hz
        self.enabled = enabled
        self._now = now
        self._sleep = sleep
        self.overruns = 0

    @property
    def period(self) -> float:
        """Cycle period in seconds."""
        return 1.0 / self.hz

    def run_cycle(self, work: Callable[[], T]) -> T:
        """Run one unit of work and pad it out to a full period."""
        if not self.enabled:
            return work()

        start = self._now()
        result = work()
        elapsed = self._now() - start

        remaining = self.period - elapsed
        if remaining > 0:
            self._sleep(remaining)
        elif remaining < 0:
            self.overruns += 1
            logger.debug("Cycle overran period by %.2f ms", -remaining * 1000)
        return result
