# pipeline/watermark_remover.py
"""
Watermark remover pipeline
One percent-sized region, several directional passes, feathered seams,
re-encoded to the requested format.
"""
from __future__ import annotations
from pathlib import Path
import logging
import os

from dotenv import load_dotenv

from ..models.image import Image, OutputFormat
from ..models.pass_parameters import PassParameters
from ..models.rect import Direction, PercentRegion
from ..models.tool_result import ToolResult
from ..services.image_service import ImageService
from ..services.patch_fill_service import PatchFillService
from ..services.region_service import RegionService

# ------------------------------------------------------------------
# env‑vars
load_dotenv()
MIN_REGION_PX   = int(os.getenv("WATERMARK_MIN_REGION_PX", "8"))
DEFAULT_PASSES  = int(os.getenv("DEFAULT_PASSES", "2"))
DEFAULT_FEATHER = int(os.getenv("DEFAULT_FEATHER", "8"))
DEFAULT_QUALITY = int(os.getenv("JPEG_QUALITY", "92"))

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
def remove_watermark(
    image: Image,
    area: PercentRegion = PercentRegion(),
    *,
    passes: int = DEFAULT_PASSES,
    feather: int = DEFAULT_FEATHER,
    direction: Direction | str = Direction.AUTO,
    output_format: OutputFormat | str | None = None,
    quality: int = DEFAULT_QUALITY,
    source_name: str | None = None,
    patch_fill_service: PatchFillService = PatchFillService(),
    region_service: RegionService       = RegionService(),
    image_service: ImageService         = ImageService(),
    min_region_px: int                  = MIN_REGION_PX,
) -> ToolResult:
    """
    For the given *image*:
        • convert the percent *area* to a pixel rect at the image's resolution
        • run `passes` select → blit → feather passes over it
        • update pixels in-memory (preserving original)
        • encode to *output_format* (defaults to the source file's format)

    Raises:
        InvalidRegionError: area resolves to less than *min_region_px* on a side.
        EngineError: the patch fill or the encoder failed; *image* is unchanged.
    """
    height, width = image_service.get_image_dimensions(image)
    target = region_service.validate(
        region_service.percent_to_rect(area.clamped(), width, height), width, height, min_region_px
    )

    if output_format is None:
        output_format = OutputFormat.from_path(source_name or image.path or "")
    output_format = OutputFormat.parse(output_format)

    params = PassParameters(pass_count=passes, feather_radius=feather, direction=direction)
    new_pixels = patch_fill_service.apply(image.pixels, [target], params)

    # encode before touching the caller's image so a failed export leaves it as it was
    patched = image_service.create_image(new_pixels, image.path)
    data = image_service.encode(patched, output_format, quality)
    image_service.apply_pipeline_modification(image, new_pixels)

    filename = image_service.output_name(source_name or (Path(image.path).name if image.path else None),
                                         output_format)
    logger.info(f"Watermark removed from {target.as_dict()} → {filename} "
                f"({image_service.format_bytes(len(data))})")
    return ToolResult(image=image, data=data, output_format=output_format,
                      filename=filename, regions=[target])
