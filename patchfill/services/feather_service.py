from __future__ import annotations
import logging
import os

import numpy as np
import cv2
from dotenv import load_dotenv

from ..models.errors import InvalidRegionError, RenderSurfaceUnavailableError
from ..models.rect import Rect
from .compositor_service import check_surface

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class FeatherService:
    """
    Softens the hard seam a blit leaves behind: blur the target rect and
    lay the blurred copy back over it at partial opacity.

    • radius 0       →  no-op
    • radius 4-10    →  typical soft seam
    • radius 20-30   →  patch mostly smeared out
    """

    def __init__(self, alpha: float = None):
        self.alpha = alpha if alpha is not None else float(os.getenv("FEATHER_ALPHA", "0.55"))

    @staticmethod
    def _blur(region: np.ndarray, radius: int) -> np.ndarray:
        """
        Gaussian blur (σ = radius) of the crop alone. The border is
        replicated from the crop, so nothing outside the target leaks in.
        """
        return cv2.GaussianBlur(region, (0, 0), sigmaX=radius, sigmaY=radius,
                                borderType=cv2.BORDER_REPLICATE)

    @staticmethod
    def _premultiply(rgba: np.ndarray) -> np.ndarray:
        out = rgba.copy()
        out[..., :3] *= rgba[..., 3:4] / 255.0
        return out

    @staticmethod
    def _unpremultiply(rgba: np.ndarray, fallback: np.ndarray) -> np.ndarray:
        """Back to straight alpha; fully transparent pixels keep their *fallback* colour."""
        a = rgba[..., 3:4]
        rgb = np.where(a > 0, rgba[..., :3] * 255.0 / np.maximum(a, 1e-6), fallback[..., :3])
        return np.concatenate([rgb, a], axis=2)

    def feather(self, buffer: np.ndarray, target: Rect, radius: int, alpha: float = None) -> None:
        """
        In place: buffer[target] = alpha·blur(buffer[target]) + (1 − alpha)·buffer[target].
        RGBA crops are blurred premultiplied, so colour under transparent
        pixels does not bleed into opaque ones.
        """
        if radius <= 0:
            return
        alpha = self.alpha if alpha is None else alpha

        check_surface(buffer)
        h, w = buffer.shape[:2]
        if not target.fits(w, h):
            raise InvalidRegionError(f"target rect {target.as_dict()} is outside the {w}x{h} buffer")

        original = buffer[target.slices()].astype("float32")
        has_alpha = original.ndim == 3 and original.shape[2] == 4
        working = self._premultiply(original) if has_alpha else original
        try:
            blurred = self._blur(working, radius)
        except cv2.error as err:
            raise RenderSurfaceUnavailableError(f"Blur failed: {err}") from err
        blurred = blurred.reshape(working.shape)

        out = blurred * alpha + working * (1.0 - alpha)
        if has_alpha:
            out = self._unpremultiply(out, original)
        buffer[target.slices()] = np.clip(np.rint(out), 0, 255).astype(np.uint8)
