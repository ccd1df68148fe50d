# pipeline/object_eraser.py
"""
Object eraser pipeline
Any number of drag-drawn pixel regions, one blended pass each, PNG out.
"""
from __future__ import annotations
from typing import Iterable, List
import logging
import os

from dotenv import load_dotenv

from ..models.errors import InvalidRegionError
from ..models.image import Image, OutputFormat
from ..models.pass_parameters import PassParameters, SourceStrategy
from ..models.rect import Direction, Rect
from ..models.tool_result import ToolResult
from ..services.image_service import ImageService
from ..services.patch_fill_service import PatchFillService
from ..services.region_service import RectLike, RegionService

# ------------------------------------------------------------------
# env‑vars
load_dotenv()
MIN_REGION_PX          = int(os.getenv("ERASER_MIN_REGION_PX", "5"))
DEFAULT_BLEND_STRENGTH = int(os.getenv("DEFAULT_BLEND_STRENGTH", "18"))
OUTPUT_NAME            = "object-erased-output.png"

logger = logging.getLogger(__name__)


def erase_objects(
    image: Image,
    regions: Iterable[RectLike],
    *,
    blend_strength: int = DEFAULT_BLEND_STRENGTH,
    strategy: SourceStrategy | str = SourceStrategy.PATCH,
    patch_fill_service: PatchFillService = PatchFillService(),
    region_service: RegionService       = RegionService(),
    image_service: ImageService         = ImageService(),
    min_region_px: int                  = MIN_REGION_PX,
) -> ToolResult:
    """
    For every region in *regions* (in order):
        • flip drag extents, clamp to the image, drop regions under *min_region_px*
        • patch it from its best neighbour (or a stretched strip, strategy="strip")
        • feather the seam with radius = *blend_strength*
    Updates the image in-memory (preserving original) and returns PNG bytes.

    Raises:
        InvalidRegionError: no region was given.
    """
    regions = list(regions)
    if not regions:
        raise InvalidRegionError("Mark at least one region to erase.")

    height, width = image_service.get_image_dimensions(image)
    targets: List[Rect] = region_service.prepare_regions(regions, width, height, min_region_px)
    if len(targets) < len(regions):
        logger.info(f"Ignoring {len(regions) - len(targets)} region(s) smaller than {min_region_px}px")

    params = PassParameters(
        pass_count=1,
        feather_radius=blend_strength,
        direction=Direction.AUTO,
        strategy=strategy,
    )
    new_pixels = patch_fill_service.apply(image.pixels, targets, params)

    patched = image_service.create_image(new_pixels, image.path)
    data = image_service.encode(patched, OutputFormat.PNG)
    image_service.apply_pipeline_modification(image, new_pixels)

    logger.info(f"Erased {len(targets)} region(s) → {OUTPUT_NAME}")
    return ToolResult(image=image, data=data, output_format=OutputFormat.PNG,
                      filename=OUTPUT_NAME, regions=targets)
