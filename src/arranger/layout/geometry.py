"""Plain geometry helpers for hit-testing sidebar rows."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Point:
    """A pointer sample."""

    x: float
    y: float


@dataclass(slots=True, frozen=True)
class Rect:
    """An axis-aligned box.

    Attributes:
        left: X coordinate of the left edge.
        top: Y coordinate of the top edge.
        width: Horizontal extent.
        height: Vertical extent.
    """

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def mid_y(self) -> float:
        return self.top + self.height / 2

    def contains(self, point: Point) -> bool:
        return self.left <= point.x <= self.right and self.top <= point.y <= self.bottom

    def padded(self, amount: float) -> "Rect":
        """Return the box grown outward by ``amount`` on every side."""
        return Rect(
            self.left - amount,
            self.top - amount,
            self.width + 2 * amount,
            self.height + 2 * amount,
        )

    def center_band(self, ratio: float, horizontal_padding: float = 0) -> "Rect":
        """Return the middle ``ratio`` of the box vertically, widened horizontally.

        Args:
            ratio: Share of the height kept around the vertical center.
            horizontal_padding: Slack added on the left and right edges.

        Returns:
            Rect: The band used for "drop onto this row" detection.
        """
        inset = self.height * (1 - ratio) / 2
        return Rect(
            self.left - horizontal_padding,
            self.top + inset,
            self.width + 2 * horizontal_padding,
            self.height - 2 * inset,
        )

    def vertical_distance(self, y: float) -> float:
        """Return how far ``y`` lies outside the box vertically (0 when inside)."""
        if y < self.top:
            return self.top - y
        if y > self.bottom:
            return y - self.bottom
        return 0.0


__all__ = ["Point", "Rect"]
