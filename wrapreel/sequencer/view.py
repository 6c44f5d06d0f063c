"""
Derived, read-only views of the sequencer state.

Nothing here is cached: every value is recomputed from the controller's
state on each read so the rendering side can never observe a stale accent
or pulse flag.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from .slides import SlideDescriptor, SlideKind, SubPhase
from .state import SequenceState, SequencerMode
from .supply import Item, ItemSupply
from .timing import PALETTE, SEASON_LABELS


class DisplayKind(Enum):
    """What the rendering layer should show."""
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    INTRO = "intro"
    HEADLINE = "headline"
    DETAIL = "detail"
    FINAL = "final"
    ALTERNATE = "alternate"


def accent_color(index: int, palette: Sequence[str] = PALETTE) -> str:
    """Accent color for slide *index*, cycling through *palette*."""
    return palette[index % len(palette)]


def should_pulse(index: int, total: int) -> bool:
    """True on the structural boundaries: intro, first product, last product, final."""
    if total <= 0:
        return False
    return index in (0, 1, total - 2, total - 1)


def headline_label(ordinal: int) -> str:
    """Season label shown on a product headline ('' past the last season)."""
    if 0 <= ordinal < len(SEASON_LABELS):
        return SEASON_LABELS[ordinal]
    return ""


def display_kind(
    supply: ItemSupply,
    descriptor: Optional[SlideDescriptor],
    sub_phase: SubPhase,
    mode: SequencerMode,
) -> DisplayKind:
    """Pick the display for the current state; fallbacks win over slides."""
    if mode is SequencerMode.ALTERNATE:
        return DisplayKind.ALTERNATE
    if supply.is_loading:
        return DisplayKind.LOADING
    if supply.error is not None:
        return DisplayKind.ERROR
    if descriptor is None:
        return DisplayKind.EMPTY
    if descriptor.kind is SlideKind.INTRO:
        return DisplayKind.INTRO
    if descriptor.kind is SlideKind.FINAL:
        return DisplayKind.FINAL
    if sub_phase is SubPhase.HEADLINE:
        return DisplayKind.HEADLINE
    return DisplayKind.DETAIL


def render_key(display: DisplayKind, item: Optional[Item], index: int) -> str:
    """Stable key identifying one rendered slide (changes trigger a transition)."""
    if display is DisplayKind.HEADLINE:
        return f"text-{item.id if item else 'def'}-{index}"
    if display is DisplayKind.DETAIL:
        return f"prod-{item.id if item else 'def'}-{index}"
    return display.value


@dataclass(frozen=True)
class SlideView:
    """Everything the rendering collaborators read from the sequencer."""
    current_index: int
    slide_kind: Optional[SlideKind]
    ordinal: Optional[int]
    sub_phase: SubPhase
    mode: SequencerMode
    accent_color: str
    should_pulse: bool
    display: DisplayKind
    key: str
    headline: str = ""
    item: Optional[Item] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible representation."""
        return {
            "index": self.current_index,
            "slide": self.slide_kind.value if self.slide_kind else None,
            "ordinal": self.ordinal,
            "phase": self.sub_phase.value,
            "mode": self.mode.name.lower(),
            "accent": self.accent_color,
            "pulse": self.should_pulse,
            "display": self.display.value,
            "key": self.key,
            "headline": self.headline,
            "item": self.item.to_dict() if self.item else None,
            "error": self.error,
        }

    def describe(self) -> str:
        """One-line human readable summary."""
        parts = [f"#{self.current_index}", self.display.value]
        if self.headline:
            parts.append(self.headline)
        if self.item is not None and self.display is DisplayKind.DETAIL:
            parts.append(self.item.title or self.item.id)
        if self.error:
            parts.append(f"error={self.error}")
        parts.append(self.accent_color)
        if self.should_pulse:
            parts.append("pulse")
        return " ".join(parts)


def build_view(
    state: SequenceState,
    supply: ItemSupply,
    descriptor: Optional[SlideDescriptor],
    total: int,
) -> SlideView:
    """Assemble a :class:`SlideView` from controller state."""
    index = state.current_index
    item: Optional[Item] = None
    headline = ""
    ordinal: Optional[int] = None
    if descriptor is not None and descriptor.is_product:
        ordinal = descriptor.ordinal
        if ordinal is not None and ordinal < len(supply.items):
            item = supply.items[ordinal]
            headline = headline_label(ordinal)

    display = display_kind(supply, descriptor, state.sub_phase, state.mode)
    return SlideView(
        current_index=index,
        slide_kind=descriptor.kind if descriptor else None,
        ordinal=ordinal,
        sub_phase=state.sub_phase,
        mode=state.mode,
        accent_color=accent_color(index),
        should_pulse=should_pulse(index, total),
        display=display,
        key=render_key(display, item, index),
        headline=headline,
        item=item,
        error=supply.error,
    )
