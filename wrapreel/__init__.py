"""WrapReel: a timed slide presentation sequencer.

The ``sequencer`` package holds the state machine that walks an intro
slide, one slide per item and a closing slide, then hands over to the
alternate experience once per cycle.
"""

__app_name__ = "WrapReel"
__version__ = "0.1.0"
