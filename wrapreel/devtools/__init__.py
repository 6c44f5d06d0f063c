"""Developer tools package.

Contains utilities used during development and CI, such as a manually
advanced clock that replaces Qt timers. These tools are not required for
normal application use but enable deterministic testing.
"""

__all__ = [
    "manual_clock",
]
