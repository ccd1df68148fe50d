from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

from .image import Image, OutputFormat
from .rect import Rect


@dataclass
class ToolResult:
    """
    Data object returned by the tool pipelines: the patched Image plus the
    encoded bytes ready for download.
    """
    image: Image
    data: bytes
    output_format: OutputFormat
    filename: str
    regions: List[Rect] = field(default_factory=list)  # pixel rects actually patched

    @property
    def mime_type(self) -> str:
        return self.output_format.mime_type

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height
