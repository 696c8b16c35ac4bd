"""Normalized bounding boxes and Intersection-over-Union scoring.

All boxes are relative to the image size: ``x``/``y`` is the top-left corner
and ``w``/``h`` the extent, each in ``[0, 1]``.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BoundingBox:
    """An axis-aligned box in normalized image coordinates."""

    x: float
    y: float
    w: float
    h: float

    @property
    def area(self) -> float:
        return self.w * self.h

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.w / 2, self.y + self.h / 2

    def is_valid(self) -> bool:
        """True when the box has a positive width and height."""
        return self.w > 0 and self.h > 0

    @classmethod
    def from_pixels(
        cls, x: float, y: float, w: float, h: float, width: int, height: int
    ) -> "BoundingBox":
        """Normalize a pixel-space box by the image dimensions."""
        return cls(x=x / width, y=y / height, w=w / width, h=h / height)


def iou(a: BoundingBox, b: BoundingBox) -> float:
    """Intersection-over-Union of two boxes with positive area.

    Returns 0.0 for disjoint boxes and 1.0 for identical ones.
    """
    x1 = max(a.x, b.x)
    y1 = max(a.y, b.y)
    x2 = min(a.x + a.w, b.x + b.w)
    y2 = min(a.y + a.h, b.y + b.h)

    inter = max(0.0, x2 - x1) * max(0.0, y2 - y1)
    return inter / (a.area + b.area - inter)
