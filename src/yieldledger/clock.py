"""Time sources for the ledger (integer seconds)."""

import time


def system_clock() -> int:
    """Wall-clock time in whole seconds."""
    return int(time.time())


class ManualClock:
    """Clock advanced explicitly; used by tests and simulations."""

    def __init__(self, start: int = 0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"cannot move clock backwards by {seconds}s")
        self.now += seconds
        return self.now

    def advance_days(self, days: float) -> int:
        return self.advance(int(days * 86_400))
