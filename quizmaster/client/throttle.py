"""Minimum interval between quiz generations from one client session."""

import time
from collections.abc import Callable

from quizmaster.core.errors import CooldownActive


class GenerationCooldown:
    """Reject a generation that starts within ``seconds`` of the last success.

    This is client-side admission control only; the server does not
    enforce it.
    """

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.seconds = seconds
        self._clock = clock
        self._last_success: float | None = None

    def remaining(self) -> float:
        if self._last_success is None:
            return 0.0
        return max(0.0, self.seconds - (self._clock() - self._last_success))

    def check(self) -> None:
        wait = self.remaining()
        if wait > 0:
            raise CooldownActive(wait)

    def record_success(self) -> None:
        self._last_success = self._clock()
