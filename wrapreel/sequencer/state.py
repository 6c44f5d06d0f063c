"""Sequencer state model shared by the controller and the derived views."""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto

from .slides import SubPhase


class SequencerMode(Enum):
    """Top-level sequencer states."""
    UNINITIALIZED = auto()  # No usable items delivered yet
    SEQUENCING = auto()     # Walking the slides
    ALTERNATE = auto()      # Cycle finished; alternate experience active


@dataclass(frozen=True)
class SequenceState:
    """Point-in-time copy of the controller's mutable state."""
    current_index: int = 0
    sub_phase: SubPhase = SubPhase.HEADLINE
    mode: SequencerMode = SequencerMode.UNINITIALIZED
