"""
Display timing constants and the timing configuration object.

All durations are in milliseconds. ``WRAPREEL_TIME_SCALE`` scales every
duration at once, which keeps demos and headless runs short without
touching the relative pacing.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
import logging
import os

logger = logging.getLogger(__name__)

INTRO_MS = 4000
HEADLINE_MS = 3000
DETAIL_MS = 5000
CYCLE_BUFFER_MS = 500
PRODUCT_CYCLE_TOTAL_MS = HEADLINE_MS + DETAIL_MS + CYCLE_BUFFER_MS

PALETTE: tuple[str, ...] = ("#4060ff", "#20ffa0", "#ff4060", "#ffcc00")

# Headline label per product ordinal; later ordinals get no label
SEASON_LABELS: tuple[str, ...] = ("Spring", "Summer", "Fall", "Winter")

TIME_SCALE_ENV = "WRAPREEL_TIME_SCALE"


@dataclass(frozen=True)
class SequencerTiming:
    """
    Durations used by the phase scheduler.

    Attributes:
        intro_ms: Dwell on the intro slide
        headline_ms: Headline phase of a product slide
        detail_ms: Detail phase of a product slide
        cycle_buffer_ms: Extra pause appended after the detail phase
    """
    intro_ms: float = INTRO_MS
    headline_ms: float = HEADLINE_MS
    detail_ms: float = DETAIL_MS
    cycle_buffer_ms: float = CYCLE_BUFFER_MS

    @property
    def product_cycle_ms(self) -> float:
        """Total dwell of a product slide (both phases plus buffer)."""
        return self.headline_ms + self.detail_ms + self.cycle_buffer_ms

    def cycle_ms(self, item_count: int) -> float:
        """Length of one full automatic cycle over *item_count* items."""
        if item_count <= 0:
            return 0.0
        # Product slides and the final slide share the same aggregate dwell
        return self.intro_ms + (item_count + 1) * self.product_cycle_ms

    def scaled(self, factor: float) -> SequencerTiming:
        """Return a copy with every duration multiplied by *factor*."""
        if factor <= 0:
            raise ValueError(f"Time scale must be positive, got {factor}")
        return replace(
            self,
            intro_ms=self.intro_ms * factor,
            headline_ms=self.headline_ms * factor,
            detail_ms=self.detail_ms * factor,
            cycle_buffer_ms=self.cycle_buffer_ms * factor,
        )

    @classmethod
    def from_env(cls) -> SequencerTiming:
        """Build timing from ``WRAPREEL_TIME_SCALE`` (default 1.0)."""
        raw = os.environ.get(TIME_SCALE_ENV, "").strip()
        if not raw:
            return cls()
        try:
            factor = float(raw)
        except ValueError:
            logger.warning("[timing] Ignoring non-numeric %s=%r", TIME_SCALE_ENV, raw)
            return cls()
        if factor <= 0:
            logger.warning("[timing] Ignoring non-positive %s=%s", TIME_SCALE_ENV, raw)
            return cls()
        return cls().scaled(factor)


DEFAULT_TIMING = SequencerTiming()
