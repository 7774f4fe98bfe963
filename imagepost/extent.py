# ImagePost - Extent
"""
Rectangular image bounds in filter space.

Filter space uses integer pixel coordinates with the origin at the top left
corner of the source image. Stages which grow their working rectangle (blur,
tiling, glow) move the origin of their output into negative coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Extent:
    """Axis-aligned rectangle (x, y, width, height) in filter space."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @classmethod
    def from_size(cls, size: tuple[int, int]) -> Extent:
        """Extent of the given (width, height) placed at the origin."""
        return cls(0, 0, int(size[0]), int(size[1]))

    @classmethod
    def from_corners(cls, x: int, y: int, x2: int, y2: int) -> Extent:
        """Extent spanning from (x, y) to the exclusive corner (x2, y2)."""
        return cls(x, y, max(0, x2 - x), max(0, y2 - y))

    @property
    def x2(self) -> int:
        """Right edge x coordinate (exclusive)."""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Bottom edge y coordinate (exclusive)."""
        return self.y + self.height

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def center(self) -> tuple[float, float]:
        """Center point of the extent."""
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> int:
        return self.width * self.height

    def is_empty(self) -> bool:
        """True if the extent covers no pixel."""
        return self.width <= 0 or self.height <= 0

    def outset(self, amount: int) -> Extent:
        """Grow the extent by ``amount`` pixels on every side.

        Negative amounts shrink it, never below zero size.
        """
        return Extent.from_corners(
            self.x - amount, self.y - amount, self.x2 + amount, self.y2 + amount
        )

    def union(self, other: Extent) -> Extent:
        """Smallest extent containing both extents."""
        if other.is_empty():
            return self
        if self.is_empty():
            return other
        return Extent.from_corners(
            min(self.x, other.x),
            min(self.y, other.y),
            max(self.x2, other.x2),
            max(self.y2, other.y2),
        )

    def intersection(self, other: Extent) -> Extent:
        """Overlapping region of both extents (may be empty)."""
        return Extent.from_corners(
            max(self.x, other.x),
            max(self.y, other.y),
            min(self.x2, other.x2),
            min(self.y2, other.y2),
        )

    def contains(self, other: Extent) -> bool:
        """True if ``other`` lies completely inside this extent."""
        return (
            self.x <= other.x
            and self.y <= other.y
            and other.x2 <= self.x2
            and other.y2 <= self.y2
        )

    def to_int_tuple(self) -> tuple[int, int, int, int]:
        """Return as (x, y, width, height) integer tuple."""
        return (self.x, self.y, self.width, self.height)

    def to_dict(self) -> dict:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}
