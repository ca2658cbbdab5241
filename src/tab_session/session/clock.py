"""Clock capability injected into the reducer and the tab factory.

Transitions never read the wall clock directly; they receive a ``Clock``
so a sequence of actions can be replayed deterministically.

Classes
-------
- FixedClock  — manually driven clock for tests and replay
"""
from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]


def system_clock() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class FixedClock:
    """A clock that only moves when told to.

    Parameters
    ----------
    start:
        Initial reading in epoch milliseconds.
    step:
        Amount added after every reading.  Zero (default) keeps the clock
        frozen until ``advance`` or ``set`` is called.
    """

    def __init__(self, start: int = 1_700_000_000_000, step: int = 0) -> None:
        self._now = start
        self._step = step

    def __call__(self) -> int:
        now = self._now
        self._now += self._step
        return now

    def advance(self, millis: int) -> None:
        self._now += millis

    def set(self, now: int) -> None:
        self._now = now

    def __repr__(self) -> str:
        return f"FixedClock(now={self._now}, step={self._step})"
