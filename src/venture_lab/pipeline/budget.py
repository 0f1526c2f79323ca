"""Wall-clock budget for one pipeline invocation."""

from __future__ import annotations

import time
from collections.abc import Callable


class TimeBudget:
    """Deadline measured on a monotonic clock from construction time.

    One budget is created per invocation; a step checks :meth:`exhausted`
    before it starts, never while it runs.
    """

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._deadline = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._deadline - self._clock())

    def exhausted(self) -> bool:
        return self._clock() >= self._deadline
