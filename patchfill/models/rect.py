from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import math
from typing import Tuple


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves going away from zero (2.5 → 3, -2.5 → -3)."""
    if not math.isfinite(value):
        raise ValueError(f"Cannot round non-finite value {value!r}")
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def clamp(value, low, high):
    return min(max(value, low), high)


class Direction(str, Enum):
    """Where the selector looks for donor pixels relative to a target rect."""
    AUTO = "auto"
    ABOVE = "above"
    BELOW = "below"
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: "Direction | str") -> "Direction":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(d.value for d in cls)
            raise ValueError(f"Unknown patch direction {value!r} (expected one of: {choices})")


# Tie-break order for auto mode, first-seen wins.
CARDINAL_ORDER: Tuple[Direction, ...] = (
    Direction.ABOVE,
    Direction.BELOW,
    Direction.LEFT,
    Direction.RIGHT,
)


@dataclass(frozen=True)
class RawRect:
    """
    Rectangle as the user drew it: float coordinates, width/height may be
    negative when the drag went up or left, may hang off the buffer.
    """
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_points(cls, start: Tuple[float, float], end: Tuple[float, float]) -> "RawRect":
        return cls(x=start[0], y=start[1], width=end[0] - start[0], height=end[1] - start[1])

    def flipped(self) -> "RawRect":
        """Same rectangle with non-negative extents and (x, y) at the minimum corner."""
        x = self.x if self.width >= 0 else self.x + self.width
        y = self.y if self.height >= 0 else self.y + self.height
        return RawRect(x=x, y=y, width=abs(self.width), height=abs(self.height))


@dataclass(frozen=True)
class Rect:
    """
    Normalized integer pixel rectangle. (x, y) is the top-left corner,
    width/height are >= 1.
    """
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return max(self.width, 0) * max(self.height, 0)

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def overlap_area(self, other: "Rect") -> int:
        x1 = max(self.x, other.x)
        y1 = max(self.y, other.y)
        x2 = min(self.right, other.right)
        y2 = min(self.bottom, other.bottom)
        return max(0, x2 - x1) * max(0, y2 - y1)

    def fits(self, buffer_width: int, buffer_height: int) -> bool:
        return (
            self.x >= 0 and self.y >= 0
            and self.width >= 1 and self.height >= 1
            and self.right <= buffer_width and self.bottom <= buffer_height
        )

    def slices(self) -> Tuple[slice, slice]:
        """(rows, cols) slices for indexing an (H, W, ...) array."""
        return slice(self.y, self.bottom), slice(self.x, self.right)

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class PercentRegion:
    """
    Resolution-independent region in percent of the image dimensions,
    as edited with the watermark tool's sliders.
    """
    x: float = 30.0
    y: float = 30.0
    width: float = 32.0
    height: float = 16.0

    def clamped(self) -> "PercentRegion":
        width = clamp(self.width, 1.0, 100.0)
        height = clamp(self.height, 1.0, 100.0)
        return PercentRegion(
            x=clamp(self.x, 0.0, 100.0 - width),
            y=clamp(self.y, 0.0, 100.0 - height),
            width=width,
            height=height,
        )
