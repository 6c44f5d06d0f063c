"""
Phase Scheduler - owner of the single outstanding display timer.

The scheduler never holds more than one live timer. ``schedule()`` always
cancels the previous handle before arming the next one, and every armed
timer carries a generation token so that an expiry which was already
queued on the event loop when it got cancelled is discarded instead of
reaching the controller.

Timer backends implement a tiny interface:

    handle = source.arm(delay_ms, callback)
    handle.cancel()

``QtTimerSource`` runs on the Qt event loop (the single execution context
shared with every state mutation). Tests and the ``plan`` CLI command use
``wrapreel.devtools.manual_clock.ManualTimerSource`` instead.
"""

from __future__ import annotations
import logging
from typing import Callable, Optional, Protocol

from PyQt6.QtCore import QTimer, Qt

from .slides import SlideDescriptor, SlideKind, SubPhase
from .timing import DEFAULT_TIMING, SequencerTiming


class TimerHandle(Protocol):
    """Opaque handle to one armed one-shot timer."""

    def cancel(self) -> None: ...


class TimerSource(Protocol):
    """Factory of one-shot timers running on the caller's event loop."""

    def arm(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...


class _QtTimerHandle:
    __slots__ = ("_source", "_token")

    def __init__(self, source: "QtTimerSource", token: int):
        self._source = source
        self._token = token

    def cancel(self) -> None:
        self._source._cancel(self._token)  # pylint: disable=protected-access


class QtTimerSource:
    """
    Single-shot ``QTimer`` backend. Requires a running Qt event loop.

    One ``QTimer`` is reused for every arm; arming again replaces the
    previous deadline. The timer is never deleted while it is emitting.
    """

    def __init__(self):
        self._timer: Optional[QTimer] = None
        self._callback: Optional[Callable[[], None]] = None
        self._token = 0

    def _ensure_timer(self) -> QTimer:
        if self._timer is None:
            timer = QTimer()
            timer.setSingleShot(True)
            timer.setTimerType(Qt.TimerType.PreciseTimer)
            timer.timeout.connect(self._on_timeout)
            self._timer = timer
        return self._timer

    def arm(self, delay_ms: float, callback: Callable[[], None]) -> _QtTimerHandle:
        timer = self._ensure_timer()
        timer.stop()
        self._token += 1
        self._callback = callback
        timer.start(max(0, int(round(delay_ms))))
        return _QtTimerHandle(self, self._token)

    def _cancel(self, token: int) -> None:
        if token != self._token or self._callback is None:
            return
        self._callback = None
        if self._timer is not None:
            self._timer.stop()

    def _on_timeout(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


class PhaseScheduler:
    """
    Owns at most one deferred callback and computes slide delays.

    Usage:
        scheduler = PhaseScheduler()
        delay = scheduler.compute_delay(descriptor, SubPhase.HEADLINE)
        scheduler.schedule(delay, on_expired)
        ...
        scheduler.cancel()
    """

    def __init__(
        self,
        timing: Optional[SequencerTiming] = None,
        timer_source: Optional[TimerSource] = None,
    ):
        self.timing = timing or DEFAULT_TIMING
        self._source: TimerSource = timer_source or QtTimerSource()
        self._handle: Optional[TimerHandle] = None
        self._generation = 0
        self._pending_delay_ms: Optional[float] = None
        self.logger = logging.getLogger(__name__)

    @property
    def is_armed(self) -> bool:
        """True while a timer is live."""
        return self._handle is not None

    @property
    def pending_delay_ms(self) -> Optional[float]:
        """Delay the live timer was armed with (None when idle)."""
        return self._pending_delay_ms

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> None:
        """Cancel any live timer, then arm a one-shot timer for *callback*."""
        if delay_ms < 0:
            raise ValueError(f"Delay must be non-negative, got {delay_ms}")

        self.cancel()

        self._generation += 1
        generation = self._generation

        def _fire() -> None:
            if generation != self._generation or self._handle is None:
                self.logger.debug(
                    "[sequencer.trace] Dropping stale timer (gen=%d, current=%d)",
                    generation,
                    self._generation,
                )
                return
            # Release before the callback so it can schedule a successor
            self._handle = None
            self._pending_delay_ms = None
            callback()

        self._pending_delay_ms = delay_ms
        self._handle = self._source.arm(delay_ms, _fire)
        self.logger.debug("[sequencer.trace] Armed timer gen=%d delay=%.0fms", generation, delay_ms)

    def cancel(self) -> None:
        """Release the live timer, if any. Idempotent."""
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        self._pending_delay_ms = None
        # Invalidate callbacks already queued for the released handle
        self._generation += 1
        handle.cancel()
        self.logger.debug("[sequencer.trace] Cancelled timer")

    def compute_delay(self, descriptor: SlideDescriptor, sub_phase: SubPhase) -> float:
        """
        Dwell time for *descriptor* in *sub_phase*.

        Intro slides use the intro dwell; the final slide uses the aggregate
        product timing so its expiry triggers the terminal advance. Product
        slides are split into a headline phase and a detail phase (detail
        plus the cycle buffer).
        """
        timing = self.timing
        if descriptor.kind is SlideKind.INTRO:
            return timing.intro_ms
        if descriptor.kind is SlideKind.FINAL:
            return timing.product_cycle_ms
        if sub_phase is SubPhase.HEADLINE:
            return timing.headline_ms
        return timing.detail_ms + timing.cycle_buffer_ms
