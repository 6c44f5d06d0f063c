"""
Slide indexing - pure mapping from item count and position to slide kind.

A presentation over N items has N + 2 slides: an intro at index 0, one
product slide per item, and a closing slide at index N + 1. An empty item
list has no slides at all.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional


class SlideKind(Enum):
    """Classification of a single slide position."""
    INTRO = "intro"
    PRODUCT = "product"
    FINAL = "final"


class SubPhase(Enum):
    """Two-step dwell of a product slide. Ignored on intro/final slides."""
    HEADLINE = "headline"
    DETAIL = "detail"


class InvalidIndexError(ValueError):
    """Raised when an index does not address a slide of the sequence."""

    def __init__(self, index: int, total: int):
        self.index = index
        self.total = total
        if total == 0:
            msg = f"Slide index {index} is invalid: sequence has no slides"
        else:
            msg = f"Slide index {index} is out of range [0, {total})"
        super().__init__(msg)


@dataclass(frozen=True)
class SlideDescriptor:
    """
    Value describing which slide an index addresses.

    Attributes:
        kind: Intro, product or final slide
        ordinal: Zero-based item position for product slides (None otherwise)
    """
    kind: SlideKind
    ordinal: Optional[int] = None

    @classmethod
    def intro(cls) -> SlideDescriptor:
        return cls(SlideKind.INTRO)

    @classmethod
    def product(cls, ordinal: int) -> SlideDescriptor:
        return cls(SlideKind.PRODUCT, ordinal)

    @classmethod
    def final(cls) -> SlideDescriptor:
        return cls(SlideKind.FINAL)

    @property
    def is_intro(self) -> bool:
        return self.kind is SlideKind.INTRO

    @property
    def is_product(self) -> bool:
        return self.kind is SlideKind.PRODUCT

    @property
    def is_final(self) -> bool:
        return self.kind is SlideKind.FINAL

    def __str__(self) -> str:
        if self.kind is SlideKind.PRODUCT:
            return f"Product({self.ordinal})"
        return self.kind.name.capitalize()


def compute_total_slides(item_count: int) -> int:
    """Number of slides for *item_count* items (0 when there are none)."""
    if item_count <= 0:
        return 0
    return item_count + 2


def classify(index: int, total: int) -> SlideDescriptor:
    """
    Classify slide *index* in a sequence of *total* slides.

    Raises:
        InvalidIndexError: if total is 0 or index is outside [0, total)
    """
    if total <= 0 or index < 0 or index >= total:
        raise InvalidIndexError(index, total)
    if index == 0:
        return SlideDescriptor.intro()
    if index == total - 1:
        return SlideDescriptor.final()
    return SlideDescriptor.product(index - 1)


def clamp_index(index: int, total: int) -> int:
    """Return the nearest valid index for a sequence of *total* slides."""
    if total <= 0:
        raise InvalidIndexError(index, total)
    return max(0, min(index, total - 1))


def iter_slides(total: int) -> Iterator[tuple[int, SlideDescriptor]]:
    """Yield ``(index, descriptor)`` for every slide of one cycle."""
    for index in range(max(0, total)):
        yield index, classify(index, total)
