from __future__ import annotations
from io import BytesIO
from pathlib import Path
from typing import Union, List
import logging
import os

import numpy as np
import cv2
from PIL import Image as PILImage
from dotenv import load_dotenv

from ..models.errors import EncodingError
from ..models.image import Image, OutputFormat
from ..models.rect import clamp, round_half_away

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)
EXIF_ORIENTATION = 0x0112

# EXIF orientation → transform that brings the raster upright
_UPRIGHT = {
    2: lambda a: cv2.flip(a, 1),
    3: lambda a: cv2.rotate(a, cv2.ROTATE_180),
    4: lambda a: cv2.flip(a, 0),
    5: lambda a: cv2.transpose(a),
    6: lambda a: cv2.rotate(a, cv2.ROTATE_90_CLOCKWISE),
    7: lambda a: cv2.rotate(cv2.transpose(a), cv2.ROTATE_180),
    8: lambda a: cv2.rotate(a, cv2.ROTATE_90_COUNTERCLOCKWISE),
}


class ImageRepository:
    """
    Handles decoding, encoding and file I/O for Image entities.
    Pixels are always RGB or RGBA uint8 once they leave this class.
    """
    def __init__(self):
        self.VALID_EXTS = {
            ext.strip().lower()
            for ext in os.getenv("VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg,.webp,.bmp").split(",")
            if ext.strip()
        }

    @staticmethod
    def create_image(pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        if path is None:
            return Image(pixels)
        return Image(pixels=pixels, path=Path(path))

    def retrieve_image_dimensions(self, img: Image):
        return img.pixels.shape[:2]

    # ─── Decoding ─────────────────────────────────────────────────────
    @staticmethod
    def _to_rgb(arr: np.ndarray) -> np.ndarray:
        """OpenCV BGR/BGRA/gray (8 or 16 bit) → RGB/RGBA uint8."""
        if arr.dtype == np.uint16:
            arr = (arr // 257).astype(np.uint8)
        elif arr.dtype != np.uint8:
            arr = cv2.convertScaleAbs(arr)

        if arr.ndim == 2:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGB)
        if arr.shape[2] == 4:
            return cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)
        return cv2.cvtColor(arr, cv2.COLOR_BGR2RGB)

    @staticmethod
    def _exif_orientation(source) -> int:
        """EXIF orientation tag of *source* (path or file object), 1 when absent."""
        try:
            with PILImage.open(source) as im:
                return int(im.getexif().get(EXIF_ORIENTATION, 1))
        except (OSError, ValueError, TypeError):
            # no readable EXIF block; cv2 already decoded the pixels
            return 1

    @staticmethod
    def _upright(arr: np.ndarray, orientation: int) -> np.ndarray:
        """
        IMREAD_UNCHANGED keeps alpha but skips EXIF rotation, so apply it here
        the way browsers display the file.
        """
        transform = _UPRIGHT.get(orientation)
        return arr if transform is None else transform(arr)

    def decode(self, data: bytes, path: Union[str, Path] = None) -> Image:
        """Decode PNG/JPEG/WebP/... bytes into an Image."""
        buf = np.frombuffer(data, dtype=np.uint8)
        try:
            arr = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED) if buf.size else None
        except cv2.error as err:
            raise EncodingError("Failed to read this image. Try another file.") from err
        if arr is None:
            raise EncodingError("Failed to read this image. Try another file.")
        arr = self._upright(arr, self._exif_orientation(BytesIO(data)))
        return self.create_image(self._to_rgb(arr), path)

    def load(self, path: Union[str, Path]) -> Image:
        path = Path(path)
        arr = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise FileNotFoundError(f"Image not found or unreadable: {path}")
        arr = self._upright(arr, self._exif_orientation(path))
        return Image(pixels=self._to_rgb(arr), path=path)

    # ─── Encoding ─────────────────────────────────────────────────────
    @staticmethod
    def _flatten(pixels: np.ndarray, background=WHITE) -> np.ndarray:
        """Composite RGBA over a solid background → RGB."""
        rgb = pixels[:, :, :3].astype("float32")
        alpha = pixels[:, :, 3:4].astype("float32") / 255.0
        bg = np.asarray(background, dtype="float32").reshape(1, 1, 3)
        out = rgb * alpha + bg * (1.0 - alpha)
        return np.clip(np.rint(out), 0, 255).astype(np.uint8)

    def encode(self, image: Image, output_format: OutputFormat | str = OutputFormat.PNG,
               quality: int = 92) -> bytes:
        """
        Encode pixels with Pillow. quality (1-100) applies to jpg/webp only;
        jpg output is flattened onto white since it carries no alpha.
        """
        output_format = OutputFormat.parse(output_format)
        pixels = np.ascontiguousarray(image.pixels)
        if output_format is OutputFormat.JPG and image.has_alpha:
            pixels = self._flatten(pixels)

        options = {}
        if output_format.uses_quality:
            options["quality"] = clamp(round_half_away(quality), 1, 100)

        buffer = BytesIO()
        try:
            PILImage.fromarray(pixels).save(buffer, format=output_format.pil_format, **options)
        except (OSError, ValueError, KeyError) as err:
            logger.error(f"Encoding to {output_format.value} failed: {err}")
            raise EncodingError() from err
        return buffer.getvalue()

    def save(self, image: Image, output_format: OutputFormat | str | None = None,
             quality: int = 92) -> None:
        if image.path is None:
            raise ValueError("Image has no path to save to")
        path = Path(image.path)
        fmt = OutputFormat.parse(output_format) if output_format else OutputFormat.from_path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.encode(image, fmt, quality))

    @staticmethod
    def update_pixels_preserve_original(image: Image, new_pixels: np.ndarray) -> None:
        """Update pixels while preserving original for comparison"""
        if image.original_pixels is None:
            image.original_pixels = image.pixels.copy()
        image.pixels = new_pixels

    def list_dir(self, folder: Union[str, Path], *, recursive=False, exts=None) -> List[Path]:
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        pattern = "**/*" if recursive else "*"
        return [p for p in sorted(folder.glob(pattern)) if p.is_file() and p.suffix.lower() in allowed]
