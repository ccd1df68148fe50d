from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import numpy as np


@dataclass
class Image:
    """
    Simple data object: pixels (+ optional source path for bookkeeping).
    No OpenCV logic outside the repository.
    """
    pixels: np.ndarray # Shape (H, W, 3|4) RGB/RGBA or (H, W), dtype uint8.
    path: Path | None = None # Source of the image.
    original_pixels: np.ndarray | None = None # Original unmodified pixels for comparison

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def has_alpha(self) -> bool:
        return self.pixels.ndim == 3 and self.pixels.shape[2] == 4


class OutputFormat(str, Enum):
    PNG = "png"
    JPG = "jpg"
    WEBP = "webp"

    @property
    def mime_type(self) -> str:
        return _MIME_BY_FORMAT[self]

    @property
    def pil_format(self) -> str:
        return {"png": "PNG", "jpg": "JPEG", "webp": "WEBP"}[self.value]

    @property
    def uses_quality(self) -> bool:
        return self is not OutputFormat.PNG

    @classmethod
    def parse(cls, value: "OutputFormat | str") -> "OutputFormat":
        if isinstance(value, cls):
            return value
        value = str(value).strip().lower().lstrip(".")
        if value == "jpeg":
            value = "jpg"
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unsupported output format {value!r}")

    @classmethod
    def from_mime(cls, mime: str | None) -> "OutputFormat":
        """image/png → png, image/webp → webp, everything else → jpg."""
        if mime == "image/png":
            return cls.PNG
        if mime == "image/webp":
            return cls.WEBP
        return cls.JPG

    @classmethod
    def from_path(cls, path: str | Path) -> "OutputFormat":
        suffix = Path(path).suffix.lower()
        return cls.from_mime({".png": "image/png", ".webp": "image/webp"}.get(suffix))


_MIME_BY_FORMAT = {
    OutputFormat.PNG: "image/png",
    OutputFormat.JPG: "image/jpeg",
    OutputFormat.WEBP: "image/webp",
}
