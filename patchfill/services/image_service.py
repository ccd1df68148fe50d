from __future__ import annotations
from pathlib import Path
from typing import List, Union
import os

import numpy as np
from dotenv import load_dotenv

from ..models.image import Image, OutputFormat
from ..repositories.image_repository import ImageRepository

# Load environment variables
load_dotenv()


class ImageService:
    """I/O helpers.  No patch-fill logic here."""
    def __init__(self):
        self.JPEG_QUALITY = int(os.getenv("JPEG_QUALITY", "92"))
        self.image_repository = ImageRepository()

    def create_image(self, pixels: np.ndarray, path: Union[str, Path] = None) -> Image:
        return self.image_repository.create_image(pixels, path)

    def load(self, path: str | Path) -> Image:
        """Load a single image from disk into an Image object."""
        return self.image_repository.load(path)

    def decode(self, data: bytes, path: Union[str, Path] = None) -> Image:
        """Decode uploaded bytes into an Image object."""
        return self.image_repository.decode(data, path)

    def list_gallery(self, folder: Union[str, Path], *, recursive: bool = False) -> List[Path]:
        return self.image_repository.list_dir(folder, recursive=recursive)

    def encode(self, image: Image, output_format: OutputFormat | str = OutputFormat.PNG,
               quality: int | None = None) -> bytes:
        """
        Business-level method to export an image as PNG/JPEG/WebP bytes.
        """
        quality = self.JPEG_QUALITY if quality is None else quality
        return self.image_repository.encode(image, output_format, quality)

    def apply_pipeline_modification(self, image: Image, new_pixels: np.ndarray) -> None:
        """
        Apply a pipeline modification while preserving original for comparison.
        """
        self.image_repository.update_pixels_preserve_original(image, new_pixels)

    def get_image_dimensions(self, img: Image):
        return self.image_repository.retrieve_image_dimensions(img)

    @staticmethod
    def output_name(original_name: str | None, output_format: OutputFormat | str) -> str:
        """photo.jpg → photo-clean.png; an empty base name becomes img0-image."""
        output_format = OutputFormat.parse(output_format)
        name = Path(original_name or "").name
        dot = name.rfind(".")
        base = name[:dot] if dot > 0 else name
        return f"{base or 'img0-image'}-clean.{output_format.value}"

    @staticmethod
    def format_bytes(size: int) -> str:
        if size < 1024:
            return f"{size} B"
        kb = size / 1024
        if kb < 1024:
            return f"{kb:.1f} KB"
        return f"{kb / 1024:.2f} MB"
