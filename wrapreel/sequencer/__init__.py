"""
Presentation sequencer for WrapReel.

This package implements the slide sequencer: an intro slide, one slide
per item (each shown as a headline then a detail phase) and a closing
slide, advanced by timers or manual navigation, ending in a one-shot
switch into the alternate experience.

Core Components:
- slides: pure slide indexing (total count, classification)
- PhaseScheduler: owner of the single outstanding timer
- SequencerController: state machine and public navigation API
- view: derived read-only values (accent color, pulse, display)
"""

from .slides import (
    SlideKind,
    SlideDescriptor,
    SubPhase,
    InvalidIndexError,
    compute_total_slides,
    classify,
    clamp_index,
    iter_slides,
)

from .timing import (
    INTRO_MS,
    HEADLINE_MS,
    DETAIL_MS,
    CYCLE_BUFFER_MS,
    PALETTE,
    SequencerTiming,
    DEFAULT_TIMING,
)

from .scheduler import (
    PhaseScheduler,
    QtTimerSource,
)

from .state import (
    SequencerMode,
    SequenceState,
)

from .events import (
    SequencerEventType,
    SequencerEvent,
    SequencerEventEmitter,
)

from .supply import (
    Item,
    ItemSupply,
    load_supply,
)

from .view import (
    DisplayKind,
    SlideView,
    accent_color,
    should_pulse,
    headline_label,
)

from .controller import SequencerController

__all__ = [
    # Slide indexing
    'SlideKind',
    'SlideDescriptor',
    'SubPhase',
    'InvalidIndexError',
    'compute_total_slides',
    'classify',
    'clamp_index',
    'iter_slides',

    # Timing
    'INTRO_MS',
    'HEADLINE_MS',
    'DETAIL_MS',
    'CYCLE_BUFFER_MS',
    'PALETTE',
    'SequencerTiming',
    'DEFAULT_TIMING',

    # Scheduling
    'PhaseScheduler',
    'QtTimerSource',

    # State
    'SequencerMode',
    'SequenceState',

    # Event system
    'SequencerEventType',
    'SequencerEvent',
    'SequencerEventEmitter',

    # Item supply
    'Item',
    'ItemSupply',
    'load_supply',

    # Derived views
    'DisplayKind',
    'SlideView',
    'accent_color',
    'should_pulse',
    'headline_label',

    # Execution
    'SequencerController',
]
