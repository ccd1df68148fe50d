from __future__ import annotations
import logging

import numpy as np
import cv2

from ..models.errors import InvalidRegionError, RenderSurfaceUnavailableError
from ..models.rect import Rect

logger = logging.getLogger(__name__)

_INTERPOLATION = {
    "bilinear": cv2.INTER_LINEAR,
    "nearest": cv2.INTER_NEAREST,
}


def check_surface(pixels: np.ndarray, name: str = "buffer") -> None:
    """Raise unless *pixels* is a non-empty (H, W) or (H, W, C) uint8 array."""
    if not isinstance(pixels, np.ndarray):
        raise RenderSurfaceUnavailableError(f"{name} is not a pixel array")
    if pixels.ndim not in (2, 3) or pixels.size == 0:
        raise RenderSurfaceUnavailableError(f"{name} has unusable shape {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise RenderSurfaceUnavailableError(f"{name} must be uint8, got {pixels.dtype}")


class CompositorService:
    """Rectangular blit from a frozen snapshot into the live buffer."""

    def __init__(self, interpolation: str = "bilinear"):
        if interpolation not in _INTERPOLATION:
            raise ValueError(f"Unknown interpolation {interpolation!r}")
        self.interpolation = _INTERPOLATION[interpolation]

    @staticmethod
    def _check_rect(rect: Rect, pixels: np.ndarray, name: str) -> None:
        h, w = pixels.shape[:2]
        if not rect.fits(w, h):
            raise InvalidRegionError(f"{name} rect {rect.as_dict()} is outside the {w}x{h} buffer")

    def blit(self, snapshot: np.ndarray, source: Rect, target: Rect, destination: np.ndarray) -> None:
        """
        Copy snapshot[source] into destination[target]. Same-size rects are a
        straight copy; otherwise the patch is resampled to the target size.
        Only pixels inside target are written.
        """
        check_surface(snapshot, "snapshot")
        check_surface(destination, "destination")
        if snapshot is destination:
            raise RenderSurfaceUnavailableError("snapshot and destination must be separate buffers")
        if snapshot.ndim != destination.ndim or snapshot.shape[2:] != destination.shape[2:]:
            raise RenderSurfaceUnavailableError("snapshot and destination channel layouts differ")
        self._check_rect(source, snapshot, "source")
        self._check_rect(target, destination, "target")

        patch = snapshot[source.slices()]
        if source.size != target.size:
            try:
                patch = cv2.resize(patch, target.size, interpolation=self.interpolation)
            except cv2.error as err:
                raise RenderSurfaceUnavailableError(f"Resampling patch failed: {err}") from err
            if patch.ndim < destination.ndim:
                # cv2 drops a trailing single channel
                patch = patch[:, :, np.newaxis]

        destination[target.slices()] = patch
