"""
Sequencer Controller - state machine driving the slide presentation.

The SequencerController owns the slide position, the product sub-phase
and the top-level mode, and drives a PhaseScheduler:

    on_supply_changed(items arrive)  → intro armed
    timer expiry on a product slide  → headline flips to detail, re-armed
    any other timer expiry           → advance()
    advance() past the final slide   → ALTERNATE (terminal until reset)

Every navigation call cancels the live timer before touching state, so an
expiry that was already due can never land after a newer intent. Nothing
in here raises across the public API: missing data resets to the intro,
and an out-of-range index is clamped and reported as an anomaly.

Usage:
    controller = SequencerController()
    controller.on_supply_changed(ItemSupply.ready(items))
    ...
    controller.advance()           # manual next
    controller.reset_to_start()    # leave the alternate experience
    controller.dispose()
"""

from __future__ import annotations
import logging
from typing import Any, Optional

from .events import SequencerEvent, SequencerEventEmitter, SequencerEventType
from .scheduler import PhaseScheduler, TimerSource
from .slides import (
    InvalidIndexError,
    SlideDescriptor,
    SlideKind,
    SubPhase,
    clamp_index,
    classify,
    compute_total_slides,
)
from .state import SequenceState, SequencerMode
from .supply import ItemSupply
from .timing import SequencerTiming
from .view import SlideView, accent_color, build_view, should_pulse


class SequencerController:
    """
    Presentation state machine with a single owned timer.

    Responsibilities:
    - Track current slide index, sub-phase and mode
    - Arm the scheduler for the current slide and react to its expiry
    - Expose manual navigation (advance / retreat / reset_to_start)
    - Emit events for every state change, including the terminal
      switch into the alternate experience
    """

    def __init__(
        self,
        scheduler: Optional[PhaseScheduler] = None,
        event_emitter: Optional[SequencerEventEmitter] = None,
        *,
        timing: Optional[SequencerTiming] = None,
        timer_source: Optional[TimerSource] = None,
    ):
        """
        Initialize the controller.

        Args:
            scheduler: Phase scheduler to drive (built from timing/timer_source when omitted)
            event_emitter: Event bus for state changes (optional)
            timing: Durations for a scheduler built here (default: from environment)
            timer_source: Timer backend for a scheduler built here (default: Qt timers)
        """
        if scheduler is None:
            scheduler = PhaseScheduler(
                timing=timing or SequencerTiming.from_env(),
                timer_source=timer_source,
            )
        self.scheduler = scheduler
        self.event_emitter = event_emitter or SequencerEventEmitter()
        self.logger = logging.getLogger(__name__)

        self._index = 0
        self._sub_phase = SubPhase.HEADLINE
        self._mode = SequencerMode.UNINITIALIZED

        # Latest delivery vs. the supply actually being presented; they
        # differ only while ALTERNATE defers supply changes.
        self._supply = ItemSupply()
        self._active = ItemSupply()

        self._disposed = False

    # ===== State Properties =====

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def sub_phase(self) -> SubPhase:
        return self._sub_phase

    @property
    def mode(self) -> SequencerMode:
        return self._mode

    @property
    def state(self) -> SequenceState:
        """Immutable copy of (index, sub-phase, mode)."""
        return SequenceState(self._index, self._sub_phase, self._mode)

    @property
    def supply(self) -> ItemSupply:
        """Item supply currently presented."""
        return self._active

    @property
    def item_count(self) -> int:
        return len(self._active.items) if self._active.is_available else 0

    @property
    def total_slides(self) -> int:
        return compute_total_slides(self.item_count)

    @property
    def descriptor(self) -> Optional[SlideDescriptor]:
        """Descriptor of the current slide (None when there are no slides)."""
        return self._current_descriptor()

    @property
    def slide_kind(self) -> Optional[SlideKind]:
        descriptor = self._current_descriptor()
        return descriptor.kind if descriptor else None

    @property
    def accent_color(self) -> str:
        return accent_color(self._index)

    @property
    def should_pulse(self) -> bool:
        return should_pulse(self._index, self.total_slides)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def is_sequencing(self) -> bool:
        return self._mode is SequencerMode.SEQUENCING

    def is_alternate(self) -> bool:
        return self._mode is SequencerMode.ALTERNATE

    def snapshot(self) -> SlideView:
        """Read-only view for the rendering layer."""
        return build_view(self.state, self._active, self._current_descriptor(), self.total_slides)

    # ===== Supply =====

    def on_supply_changed(self, supply: ItemSupply) -> None:
        """React to a new delivery from the data source."""
        if self._disposed:
            self.logger.debug("[sequencer] Ignoring supply change after dispose")
            return

        self._supply = supply

        if self._mode is SequencerMode.ALTERNATE:
            self.logger.info(
                "[sequencer] Supply changed while in alternate mode (%d item(s)); deferred until reset",
                len(supply.items),
            )
            return

        previous = self._active
        self._active = supply

        if not supply.is_available:
            self._enter_data_unavailable(supply)
            return

        if not previous.is_available:
            self._start_cycle()
            return

        if len(previous.items) == len(supply.items):
            # Same shape: keep position and the running timer
            self.logger.debug("[sequencer] Supply re-delivered with %d item(s)", len(supply.items))
            return

        self.scheduler.cancel()
        previous_index = self._index
        self._sub_phase = SubPhase.HEADLINE
        self._clamp_to_supply()
        descriptor = self._current_descriptor()
        self.logger.info(
            "[sequencer] Supply resized %d -> %d item(s); staying on %s",
            len(previous.items),
            len(supply.items),
            descriptor,
        )
        self._emit(
            SequencerEventType.SLIDE_CHANGE,
            index=self._index,
            previous=previous_index,
            slide=str(descriptor),
            reason="supply",
        )
        self._arm_current()

    # ===== Navigation =====

    def advance(self) -> None:
        """Move to the next slide, or enter the alternate mode after the final slide."""
        self._advance(reason="manual")

    def retreat(self) -> None:
        """Move to the previous slide, wrapping from the intro to the final slide."""
        if self._disposed:
            return
        self.scheduler.cancel()

        if self._mode is SequencerMode.ALTERNATE:
            self.logger.debug("[sequencer] retreat() ignored in alternate mode")
            return

        total = self.total_slides
        if total == 0:
            return

        previous_index = self._index
        self._index = (self._index - 1 + total) % total
        self._sub_phase = SubPhase.HEADLINE
        self._emit_slide_change(previous_index, reason="manual")
        self._arm_current()

    def reset_to_start(self) -> None:
        """Leave the alternate experience (or restart) from the intro slide."""
        if self._disposed:
            return
        self.scheduler.cancel()

        previous_mode = self._mode
        self._active = self._supply
        self._index = 0
        self._sub_phase = SubPhase.HEADLINE
        self._mode = SequencerMode.SEQUENCING

        self.logger.info("[sequencer] Reset to start (was %s)", previous_mode.name)
        self._emit(
            SequencerEventType.SEQUENCE_RESET,
            previous_mode=previous_mode.name,
            items=self.item_count,
        )

        if self._active.is_available:
            self._arm_current()
        else:
            self.logger.info("[sequencer] No items to present; waiting for supply")

    # Aliases matching the rendering layer's naming
    def next(self) -> None:
        self.advance()

    def prev(self) -> None:
        self.retreat()

    # ===== Lifecycle =====

    def dispose(self) -> None:
        """Release the timer; all later calls become no-ops."""
        if self._disposed:
            return
        self.scheduler.cancel()
        self._disposed = True
        self.logger.debug("[sequencer] Disposed")
        self._emit(SequencerEventType.DISPOSED)

    def __enter__(self) -> SequencerController:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    # ===== Internals =====

    def _advance(self, reason: str) -> None:
        if self._disposed:
            return
        self.scheduler.cancel()

        if self._mode is SequencerMode.ALTERNATE:
            self.logger.debug("[sequencer] advance() ignored in alternate mode")
            return

        total = self.total_slides
        if total == 0:
            self.logger.debug("[sequencer] advance() with no slides")
            return

        if self._index + 1 >= total:
            # Terminal transition: index stays frozen on the final slide
            self._mode = SequencerMode.ALTERNATE
            self.logger.info("[sequencer] Cycle complete; entering alternate mode (%s)", reason)
            self._emit(SequencerEventType.ALTERNATE_ENTER, index=self._index, reason=reason)
            return

        previous_index = self._index
        self._index += 1
        self._sub_phase = SubPhase.HEADLINE
        self._emit_slide_change(previous_index, reason=reason)
        self._arm_current()

    def _start_cycle(self) -> None:
        self.scheduler.cancel()
        self._index = 0
        self._sub_phase = SubPhase.HEADLINE
        self._mode = SequencerMode.SEQUENCING
        self.logger.info("[sequencer] Starting cycle with %d item(s)", self.item_count)
        self._emit(
            SequencerEventType.SEQUENCE_START,
            items=self.item_count,
            total=self.total_slides,
        )
        self._arm_current()

    def _enter_data_unavailable(self, supply: ItemSupply) -> None:
        self.scheduler.cancel()
        self._index = 0
        self._sub_phase = SubPhase.HEADLINE
        if supply.is_loading:
            reason = "loading"
        elif supply.error is not None:
            reason = "error"
        else:
            reason = "empty"
        self.logger.info("[sequencer] Data unavailable (%s); reset to index 0", reason)
        self._emit(SequencerEventType.DATA_UNAVAILABLE, reason=reason, error=supply.error)

    def _on_timer_expired(self) -> None:
        if self._disposed or self._mode is not SequencerMode.SEQUENCING:
            return

        descriptor = self._current_descriptor()
        if descriptor is None:
            return

        if descriptor.is_product and self._sub_phase is SubPhase.HEADLINE:
            self._sub_phase = SubPhase.DETAIL
            self._emit(
                SequencerEventType.PHASE_CHANGE,
                index=self._index,
                phase=self._sub_phase.value,
            )
            self._arm_current()
            return

        self._advance(reason="auto")

    def _arm_current(self) -> None:
        descriptor = self._current_descriptor()
        if descriptor is None:
            return
        delay = self.scheduler.compute_delay(descriptor, self._sub_phase)
        self.logger.debug(
            "[sequencer.trace] Arming %s/%s for %.0fms",
            descriptor,
            self._sub_phase.value,
            delay,
        )
        self.scheduler.schedule(delay, self._on_timer_expired)

    def _current_descriptor(self) -> Optional[SlideDescriptor]:
        total = self.total_slides
        if total == 0:
            return None
        return classify(self._index, total)

    def _clamp_to_supply(self) -> None:
        """Pull the index back into range after the slide count shrank."""
        total = self.total_slides
        if total == 0:
            return
        try:
            classify(self._index, total)
        except InvalidIndexError as exc:
            clamped = clamp_index(self._index, total)
            self.logger.warning("[sequencer] %s; clamping to %d", exc, clamped)
            self._emit(
                SequencerEventType.ANOMALY,
                kind="invalid_index",
                index=self._index,
                total=total,
                clamped=clamped,
            )
            self._index = clamped

    def _emit_slide_change(self, previous_index: int, reason: str) -> None:
        descriptor = self._current_descriptor()
        self.logger.debug(
            "[sequencer] Slide %d -> %d (%s, %s)",
            previous_index,
            self._index,
            descriptor,
            reason,
        )
        self._emit(
            SequencerEventType.SLIDE_CHANGE,
            index=self._index,
            previous=previous_index,
            slide=str(descriptor),
            reason=reason,
        )

    def _emit(self, event_type: SequencerEventType, **data: Any) -> None:
        self.event_emitter.emit(SequencerEvent(event_type, data=data or None))
