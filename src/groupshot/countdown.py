from __future__ import annotations

import math
import time
from typing import Callable, Optional

from .audio import CountdownBeeper


class Countdown:
    """
    Non-blocking capture countdown, polled from the preview loop.

    `poll()` returns the whole seconds left (3, 2, 1, 0) and beeps once per
    change; it reports `fired` exactly once, when the count reaches zero.
    """

    def __init__(
        self,
        seconds: int = 3,
        beeper: Optional[CountdownBeeper] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.seconds = seconds
        self._beeper = beeper
        self._clock = clock
        self._deadline: Optional[float] = None
        self._last_shown: Optional[int] = None
        self.fired = False

    @property
    def running(self) -> bool:
        return self._deadline is not None

    def start(self) -> None:
        self._deadline = self._clock() + self.seconds
        self._last_shown = None
        self.fired = False

    def cancel(self) -> None:
        self._deadline = None
        self._last_shown = None

    def poll(self) -> Optional[int]:
        if self._deadline is None:
            return None
        left = max(0, int(math.ceil(self._deadline - self._clock())))
        if left != self._last_shown:
            self._last_shown = left
            if self._beeper is not None:
                if left > 0:
                    self._beeper.tick()
                else:
                    self._beeper.shutter()
        if left == 0:
            self._deadline = None
            self.fired = True
        return left
