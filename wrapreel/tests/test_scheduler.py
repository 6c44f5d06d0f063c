"""Tests for the PhaseScheduler.

Validates:
- Delay computation per slide kind and sub-phase
- At most one live timer (re-scheduling replaces the previous timer)
- Idempotent cancel and stale-callback suppression
- Qt timer backend on a real event loop
"""

import time

import pytest

from wrapreel.devtools.manual_clock import ManualTimerSource
from wrapreel.sequencer import (
    CYCLE_BUFFER_MS,
    DETAIL_MS,
    HEADLINE_MS,
    INTRO_MS,
    PhaseScheduler,
    SequencerTiming,
    SlideDescriptor,
    SubPhase,
)


@pytest.fixture
def scheduler(clock):
    return PhaseScheduler(timer_source=clock)


class TestComputeDelay:

    def test_intro(self, scheduler):
        assert scheduler.compute_delay(SlideDescriptor.intro(), SubPhase.HEADLINE) == INTRO_MS == 4000

    def test_product_phases(self, scheduler):
        product = SlideDescriptor.product(2)
        assert scheduler.compute_delay(product, SubPhase.HEADLINE) == HEADLINE_MS == 3000
        assert scheduler.compute_delay(product, SubPhase.DETAIL) == DETAIL_MS + CYCLE_BUFFER_MS == 5500

    def test_final_uses_aggregate_product_timing(self, scheduler):
        expected = HEADLINE_MS + DETAIL_MS + CYCLE_BUFFER_MS
        assert scheduler.compute_delay(SlideDescriptor.final(), SubPhase.HEADLINE) == expected
        # Sub-phase is ignored outside product slides
        assert scheduler.compute_delay(SlideDescriptor.final(), SubPhase.DETAIL) == expected

    def test_scaled_timing(self, clock):
        scheduler = PhaseScheduler(timing=SequencerTiming().scaled(0.5), timer_source=clock)
        assert scheduler.compute_delay(SlideDescriptor.intro(), SubPhase.HEADLINE) == 2000


class TestScheduling:

    def test_callback_fires_after_delay(self, scheduler, clock):
        fired = []
        scheduler.schedule(1000, lambda: fired.append(clock.now_ms))

        clock.advance(999)
        assert fired == []
        assert scheduler.is_armed
        assert scheduler.pending_delay_ms == 1000

        clock.advance(1)
        assert fired == [1000]
        assert not scheduler.is_armed
        assert scheduler.pending_delay_ms is None

    def test_second_schedule_replaces_first(self, scheduler, clock):
        fired = []
        scheduler.schedule(100, lambda: fired.append("first"))
        scheduler.schedule(200, lambda: fired.append("second"))

        assert clock.live_timers == 1
        clock.advance(1000)
        assert fired == ["second"]

    def test_cancel_is_idempotent(self, scheduler, clock):
        fired = []
        scheduler.schedule(100, lambda: fired.append(1))
        scheduler.cancel()
        scheduler.cancel()

        clock.advance(500)
        assert fired == []
        assert clock.live_timers == 0

    def test_cancel_without_timer_is_noop(self, scheduler):
        scheduler.cancel()
        assert not scheduler.is_armed

    def test_callback_can_schedule_successor(self, scheduler, clock):
        fired = []

        def first():
            fired.append(("first", clock.now_ms))
            scheduler.schedule(50, lambda: fired.append(("second", clock.now_ms)))

        scheduler.schedule(100, first)
        clock.advance(1000)
        assert fired == [("first", 100), ("second", 150)]

    def test_stale_expiry_is_dropped(self, clock):
        """A callback that the backend still delivers after cancel must not run."""
        delivered = []

        class LeakySource(ManualTimerSource):
            def arm(self, delay_ms, callback):
                delivered.append(callback)
                return super().arm(delay_ms, callback)

        source = LeakySource()
        scheduler = PhaseScheduler(timer_source=source)
        fired = []
        scheduler.schedule(100, lambda: fired.append("old"))
        scheduler.schedule(100, lambda: fired.append("new"))

        # Simulate the backend delivering the first (cancelled) expiry anyway
        delivered[0]()
        assert fired == []

        source.advance(100)
        assert fired == ["new"]

    def test_negative_delay_rejected(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.schedule(-1, lambda: None)

    def test_zero_delay_allowed(self, scheduler, clock):
        fired = []
        scheduler.schedule(0, lambda: fired.append(1))
        clock.advance(0)
        assert fired == [1]


@pytest.mark.qt
class TestQtTimerSource:

    def _spin(self, app, predicate, timeout_s=2.0):
        deadline = time.monotonic() + timeout_s
        while time.monotonic() < deadline and not predicate():
            app.processEvents()
            time.sleep(0.005)

    def test_qt_timer_fires_once(self, qapp):
        scheduler = PhaseScheduler()
        fired = []
        scheduler.schedule(20, lambda: fired.append(1))

        self._spin(qapp, lambda: bool(fired))
        self._spin(qapp, lambda: False, timeout_s=0.1)
        assert fired == [1]
        assert not scheduler.is_armed

    def test_qt_reschedule_keeps_only_latest(self, qapp):
        scheduler = PhaseScheduler()
        fired = []
        scheduler.schedule(20, lambda: fired.append("first"))
        scheduler.schedule(40, lambda: fired.append("second"))

        self._spin(qapp, lambda: bool(fired))
        self._spin(qapp, lambda: False, timeout_s=0.1)
        assert fired == ["second"]

    def test_qt_cancel_prevents_fire(self, qapp):
        scheduler = PhaseScheduler()
        fired = []
        scheduler.schedule(20, lambda: fired.append(1))
        scheduler.cancel()

        self._spin(qapp, lambda: False, timeout_s=0.1)
        assert fired == []
