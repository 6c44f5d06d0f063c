"""Deterministic timer source for development and CI.

``ManualTimerSource`` implements the scheduler's timer-source interface on
a simulated clock. Nothing fires until the clock is advanced, and timers
fire in deadline order (ties in arming order), each one at its own
deadline, so callbacks that arm new timers see a consistent ``now_ms``.
"""
from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, Optional


@dataclass(order=True)
class _Entry:
    deadline_ms: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class ManualTimerHandle:
    __slots__ = ("_entry", "_source")

    def __init__(self, source: "ManualTimerSource", entry: _Entry):
        self._source = source
        self._entry = entry

    @property
    def deadline_ms(self) -> float:
        return self._entry.deadline_ms

    @property
    def cancelled(self) -> bool:
        return self._entry.cancelled

    def cancel(self) -> None:
        if not self._entry.cancelled:
            self._entry.cancelled = True
            self._source._live -= 1  # pylint: disable=protected-access


class ManualTimerSource:
    """A simulated clock that only moves when told to."""

    def __init__(self, start_ms: float = 0.0):
        self.now_ms = float(start_ms)
        self._queue: list[_Entry] = []
        self._seq = itertools.count()
        self._live = 0
        self.armed_delays: list[float] = []

    @property
    def live_timers(self) -> int:
        """Number of armed timers that were neither fired nor cancelled."""
        return self._live

    def arm(self, delay_ms: float, callback: Callable[[], None]) -> ManualTimerHandle:
        entry = _Entry(self.now_ms + max(0.0, float(delay_ms)), next(self._seq), callback)
        heapq.heappush(self._queue, entry)
        self._live += 1
        self.armed_delays.append(float(delay_ms))
        return ManualTimerHandle(self, entry)

    def next_deadline(self) -> Optional[float]:
        """Deadline of the earliest live timer, or None when idle."""
        self._drop_cancelled()
        return self._queue[0].deadline_ms if self._queue else None

    def advance(self, ms: float) -> int:
        """Move the clock forward by *ms*, firing due timers. Returns fire count."""
        target = self.now_ms + max(0.0, float(ms))
        fired = 0
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline > target:
                break
            entry = heapq.heappop(self._queue)
            entry.cancelled = True
            self._live -= 1
            self.now_ms = entry.deadline_ms
            entry.callback()
            fired += 1
        self.now_ms = target
        return fired

    def fire_next(self) -> bool:
        """Jump straight to the earliest deadline and fire it."""
        deadline = self.next_deadline()
        if deadline is None:
            return False
        self.advance(deadline - self.now_ms)
        return True

    def run_until_idle(self, max_fires: int = 10_000) -> int:
        """Fire timers until none are live. Guards against endless loops."""
        fired = 0
        while fired < max_fires and self.fire_next():
            fired += 1
        if fired >= max_fires and self.next_deadline() is not None:
            raise RuntimeError(f"Timers still pending after {max_fires} fires")
        return fired

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)
