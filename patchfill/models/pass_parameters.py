from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import os

from dotenv import load_dotenv

from .rect import Direction, clamp, round_half_away

# Load environment variables
load_dotenv()

MAX_PASSES = int(os.getenv("MAX_PASSES", "6"))
MAX_FEATHER_RADIUS = int(os.getenv("MAX_FEATHER_RADIUS", "30"))


class SourceStrategy(str, Enum):
    PATCH = "patch"    # same-size cardinal candidate, scored in auto mode
    STRIP = "strip"    # thin strip next to the target, stretched over it

    @classmethod
    def parse(cls, value: "SourceStrategy | str") -> "SourceStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown source strategy {value!r}")


@dataclass(frozen=True)
class PassParameters:
    """
    Knobs for one apply call. Frozen once the call starts.

    pass_count and feather_radius are rounded and clamped the same way the
    tool sliders clamp them, so any number is accepted.
    """
    pass_count: int = 2                  # [1, MAX_PASSES]
    feather_radius: int = 8              # [0, MAX_FEATHER_RADIUS] px
    direction: Direction = Direction.AUTO
    strategy: SourceStrategy = SourceStrategy.PATCH

    # ── Selector / blender tuning ─────────────────────────────────────
    feather_alpha: float = field(default_factory=lambda: float(os.getenv("FEATHER_ALPHA", "0.55")))
    gap_ratio: float = field(default_factory=lambda: float(os.getenv("PATCH_GAP_RATIO", "0.12")))
    min_gap: int = field(default_factory=lambda: int(os.getenv("PATCH_MIN_GAP", "2")))
    overlap_weight: float = field(default_factory=lambda: float(os.getenv("PATCH_OVERLAP_WEIGHT", "400")))

    def __post_init__(self):
        # frozen dataclass → go through object.__setattr__
        object.__setattr__(self, "pass_count",
                           clamp(round_half_away(self.pass_count), 1, MAX_PASSES))
        object.__setattr__(self, "feather_radius",
                           clamp(round_half_away(self.feather_radius), 0, MAX_FEATHER_RADIUS))
        object.__setattr__(self, "direction", Direction.parse(self.direction))
        object.__setattr__(self, "strategy", SourceStrategy.parse(self.strategy))
        object.__setattr__(self, "feather_alpha", clamp(float(self.feather_alpha), 0.0, 1.0))
        if self.gap_ratio < 0 or self.min_gap < 0 or self.overlap_weight < 0:
            raise ValueError("gap_ratio, min_gap and overlap_weight must be non-negative")
