from __future__ import annotations
from typing import Dict, List, Tuple
import logging
import math
import os

from dotenv import load_dotenv

from ..models.rect import CARDINAL_ORDER, Direction, Rect, clamp, round_half_away

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

STRIP_SIZE = 3      # strip sampler: donor block edge, px
STRIP_OFFSET = 2    # strip sampler: distance kept from the target edge, px


class SourceSelectorService:
    """
    Picks the donor rectangle for a target rect.

    Four same-size candidates are built by sliding the target one
    (size + gap) step above, below, left and right, each clamped into the
    buffer. In auto mode they are scored by centre distance minus an
    overlap penalty; the gap keeps the donor away from the target's
    contaminated edge.
    """

    def __init__(self,
                 gap_ratio: float = None,
                 min_gap: int = None,
                 overlap_weight: float = None):
        self.gap_ratio = gap_ratio if gap_ratio is not None else float(os.getenv("PATCH_GAP_RATIO", "0.12"))
        self.min_gap = min_gap if min_gap is not None else int(os.getenv("PATCH_MIN_GAP", "2"))
        self.overlap_weight = (overlap_weight if overlap_weight is not None
                               else float(os.getenv("PATCH_OVERLAP_WEIGHT", "400")))

    # ─── Candidates ────────────────────────────────────────────────
    def gap_for(self, target: Rect) -> int:
        return max(self.min_gap, round_half_away(min(target.width, target.height) * self.gap_ratio))

    @staticmethod
    def _place(target: Rect, x: float, y: float, buffer_width: int, buffer_height: int) -> Rect:
        """Same-size rect at (x, y), clamped on each axis independently."""
        limit_x = max(buffer_width - target.width, 0)
        limit_y = max(buffer_height - target.height, 0)
        return Rect(
            x=clamp(round_half_away(x), 0, limit_x),
            y=clamp(round_half_away(y), 0, limit_y),
            width=target.width,
            height=target.height,
        )

    def candidates(self, target: Rect, buffer_width: int, buffer_height: int) -> Dict[Direction, Rect]:
        gap = self.gap_for(target)
        step_x = target.width + gap
        step_y = target.height + gap
        offsets = {
            Direction.ABOVE: (0, -step_y),
            Direction.BELOW: (0, step_y),
            Direction.LEFT: (-step_x, 0),
            Direction.RIGHT: (step_x, 0),
        }
        return {
            direction: self._place(target, target.x + dx, target.y + dy, buffer_width, buffer_height)
            for direction, (dx, dy) in offsets.items()
        }

    # ─── Scoring ───────────────────────────────────────────────────
    def score(self, candidate: Rect, target: Rect) -> float:
        """Centre distance minus overlap_weight × (overlap / target area). Higher is better."""
        (cx, cy), (tx, ty) = candidate.center, target.center
        distance = math.hypot(cx - tx, cy - ty)
        overlap_fraction = candidate.overlap_area(target) / max(target.area, 1)
        return distance - self.overlap_weight * overlap_fraction

    def rank(self, target: Rect, buffer_width: int, buffer_height: int) -> List[Tuple[Direction, Rect, float]]:
        """Candidates best first; equal scores keep above/below/left/right order."""
        found = self.candidates(target, buffer_width, buffer_height)
        scored = [(d, found[d], self.score(found[d], target)) for d in CARDINAL_ORDER]
        # sorted() is stable, so ties stay in enumeration order
        return sorted(scored, key=lambda item: -item[2])

    def select_source(
        self,
        target: Rect,
        buffer_width: int,
        buffer_height: int,
        direction: Direction | str = Direction.AUTO,
    ) -> Rect:
        """Always returns an in-bounds rect of the target's size; never fails."""
        direction = Direction.parse(direction)
        found = self.candidates(target, buffer_width, buffer_height)

        if direction is not Direction.AUTO:
            return found[direction]

        if all(candidate == target for candidate in found.values()):
            # buffer no bigger than the target: nothing to choose from
            logger.debug(f"No distinct candidate for {target.as_dict()}, falling back to right")
            return found[Direction.RIGHT]

        best_direction, best, best_score = self.rank(target, buffer_width, buffer_height)[0]
        logger.debug(f"Auto source for {target.as_dict()}: {best_direction.value} "
                     f"{best.as_dict()} (score {best_score:.2f})")
        return best

    # ─── Strip sampler ─────────────────────────────────────────────
    @staticmethod
    def select_strip(target: Rect, buffer_width: int, buffer_height: int) -> Rect:
        """
        Small block just outside the target's top-left corner (or past its
        bottom-right edge when the target hugs the border), to be stretched
        over the whole target.
        """
        if target.x > STRIP_OFFSET:
            x = target.x - STRIP_OFFSET
        else:
            x = min(buffer_width - STRIP_SIZE, target.right + 1)
        if target.y > STRIP_OFFSET:
            y = target.y - STRIP_OFFSET
        else:
            y = min(buffer_height - STRIP_SIZE, target.bottom + 1)

        x = clamp(x, 0, max(buffer_width - 1, 0))
        y = clamp(y, 0, max(buffer_height - 1, 0))
        width = max(1, min(STRIP_SIZE, buffer_width - x))
        height = max(1, min(STRIP_SIZE, buffer_height - y))
        return Rect(x=x, y=y, width=width, height=height)
