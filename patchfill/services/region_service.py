from __future__ import annotations
from typing import Iterable, List, Union
import logging
import math

from ..models.errors import InvalidRegionError
from ..models.rect import PercentRegion, RawRect, Rect, clamp, round_half_away

logger = logging.getLogger(__name__)

RectLike = Union[Rect, RawRect]


class RegionService:
    """
    Turns user-drawn rectangles into canonical in-bounds Rects.
    Every method is pure.
    """

    @staticmethod
    def _as_raw(rect: RectLike) -> RawRect:
        if not isinstance(rect, RawRect):
            rect = RawRect(x=rect.x, y=rect.y, width=rect.width, height=rect.height)
        if not all(math.isfinite(v) for v in (rect.x, rect.y, rect.width, rect.height)):
            raise InvalidRegionError(f"Region coordinates must be finite numbers, got {rect}")
        return rect

    def normalize(self, raw: RectLike, buffer_width: int, buffer_height: int) -> Rect:
        """
        Flip negative extents, round (half away from zero) and clamp so that
        1 <= width <= W, 1 <= height <= H, x + width <= W, y + height <= H.
        """
        r = self._as_raw(raw).flipped()
        width = clamp(round_half_away(r.width), 1, max(buffer_width, 1))
        height = clamp(round_half_away(r.height), 1, max(buffer_height, 1))
        x = clamp(round_half_away(r.x), 0, max(buffer_width - width, 0))
        y = clamp(round_half_away(r.y), 0, max(buffer_height - height, 0))
        return Rect(x=x, y=y, width=width, height=height)

    @staticmethod
    def is_degenerate(rect: RectLike, min_size: int) -> bool:
        """True when either side is under min_size (and never less than 1px)."""
        r = RegionService._as_raw(rect).flipped()
        limit = max(min_size, 1)
        return round_half_away(r.width) < limit or round_half_away(r.height) < limit

    def validate(self, raw: RectLike, buffer_width: int, buffer_height: int, min_size: int) -> Rect:
        rect = self.normalize(raw, buffer_width, buffer_height)
        if self.is_degenerate(raw, min_size) or self.is_degenerate(rect, min_size):
            raise InvalidRegionError(
                f"Region {rect.width}x{rect.height} is smaller than the {min_size}px minimum"
            )
        return rect

    def prepare_regions(
        self,
        raws: Iterable[RectLike],
        buffer_width: int,
        buffer_height: int,
        min_size: int = 1,
    ) -> List[Rect]:
        """Normalize every region, dropping degenerate ones. List order is kept."""
        regions: List[Rect] = []
        for raw in raws:
            rect = self.normalize(raw, buffer_width, buffer_height)
            if self.is_degenerate(raw, min_size) or self.is_degenerate(rect, min_size):
                logger.info(f"Dropping degenerate region {rect.as_dict()} (min {min_size}px)")
                continue
            regions.append(rect)
        return regions

    # ─── Percent form (watermark tool) ─────────────────────────────
    def percent_to_rect(self, region: PercentRegion, buffer_width: int, buffer_height: int) -> Rect:
        raw = RawRect(
            x=region.x / 100 * buffer_width,
            y=region.y / 100 * buffer_height,
            width=region.width / 100 * buffer_width,
            height=region.height / 100 * buffer_height,
        )
        return self.normalize(raw, buffer_width, buffer_height)

    @staticmethod
    def rect_to_percent(raw: RectLike, view_width: float, view_height: float) -> PercentRegion:
        """
        Commit a drag rectangle drawn on a view of size (view_width, view_height)
        into slider form, keeping the region inside the image.
        """
        if view_width <= 0 or view_height <= 0:
            raise InvalidRegionError("View has no size")
        r = RegionService._as_raw(raw).flipped()
        width = clamp(r.width, 1, view_width)
        height = clamp(r.height, 1, view_height)
        x = clamp(r.x, 0, view_width)
        y = clamp(r.y, 0, view_height)

        max_x = 100 - width / view_width * 100
        max_y = 100 - height / view_height * 100
        return PercentRegion(
            x=min(x / view_width * 100, max_x),
            y=min(y / view_height * 100, max_y),
            width=width / view_width * 100,
            height=height / view_height * 100,
        )
