from __future__ import annotations
from typing import Iterable, List
import logging

import numpy as np
import cv2

from ..models.errors import EngineError, RenderSurfaceUnavailableError
from ..models.image import Image
from ..models.pass_parameters import PassParameters, SourceStrategy
from ..models.patch_fill_run import PatchFillRun
from ..models.rect import Rect
from .compositor_service import CompositorService, check_surface
from .feather_service import FeatherService
from .image_service import ImageService
from .region_service import RectLike, RegionService
from .source_selector_service import SourceSelectorService

logger = logging.getLogger(__name__)


class PatchFillService:
    """
    Multi-pass select → blit → feather over a list of target regions.

    *   Works on a private copy; the caller's pixels are never touched.
    *   Each pass reads from a snapshot taken at pass start and writes into
        the working buffer, so a pass never samples its own output.
    *   Regions run in list order; later regions see earlier ones' writes.
    *   No state survives between calls.
    """

    def __init__(self,
                 region_service: RegionService = None,
                 compositor_service: CompositorService = None,
                 feather_service: FeatherService = None,
                 image_service: ImageService = None):
        self.region_service = region_service or RegionService()
        self.compositor = compositor_service or CompositorService()
        self.feather_service = feather_service or FeatherService()
        self.image_service = image_service or ImageService()

    def _selector_for(self, params: PassParameters) -> SourceSelectorService:
        return SourceSelectorService(
            gap_ratio=params.gap_ratio,
            min_gap=params.min_gap,
            overlap_weight=params.overlap_weight,
        )

    def _select(self, selector: SourceSelectorService, target: Rect, width: int, height: int,
                params: PassParameters) -> Rect:
        if params.strategy is SourceStrategy.STRIP:
            return selector.select_strip(target, width, height)
        return selector.select_source(target, width, height, params.direction)

    # ─── Public API ────────────────────────────────────────────────
    def run(self, pixels: np.ndarray, regions: Iterable[RectLike],
            params: PassParameters = None) -> tuple[np.ndarray, PatchFillRun]:
        """
        Apply every pass and return (new pixels, run record).

        Raises:
            EngineError: any failing step; the run record is discarded
                together with the partially patched copy.
        """
        params = params or PassParameters()
        check_surface(pixels)
        height, width = pixels.shape[:2]

        targets: List[Rect] = self.region_service.prepare_regions(regions, width, height)
        run = PatchFillRun(regions=targets, params=params)
        buffer = pixels.copy()

        if not targets:
            logger.info("No usable regions, nothing to do")
            run.start()
            run.finish()
            return buffer, run

        selector = self._selector_for(params)
        run.start()
        logger.info(f"Patch fill: {len(targets)} region(s), {params.pass_count} pass(es), "
                    f"feather {params.feather_radius}px, direction {params.direction.value}, "
                    f"strategy {params.strategy.value}")
        try:
            for index in range(1, params.pass_count + 1):
                snapshot = buffer.copy()
                pass_sources: List[Rect] = []
                for target in targets:
                    source = self._select(selector, target, width, height, params)
                    self.compositor.blit(snapshot, source, target, buffer)
                    self.feather_service.feather(buffer, target, params.feather_radius,
                                                 params.feather_alpha)
                    pass_sources.append(source)
                run.finish_pass(pass_sources)
                logger.debug(f"Pass {index}/{params.pass_count} done")
        except EngineError as err:
            run.fail(err)
            logger.error(f"Patch fill failed on pass {run.passes_completed + 1}: {err}")
            raise
        except (cv2.error, MemoryError) as err:
            run.fail(err)
            logger.error(f"Patch fill failed on pass {run.passes_completed + 1}: {err}")
            raise RenderSurfaceUnavailableError() from err

        run.finish()
        return buffer, run

    def apply(self, pixels: np.ndarray, regions: Iterable[RectLike],
              params: PassParameters = None) -> np.ndarray:
        """New pixel buffer of the same shape with every region patched."""
        out, _ = self.run(pixels, regions, params)
        return out

    def apply_to_image(self, image: Image, regions: Iterable[RectLike],
                       params: PassParameters = None) -> Image:
        """Patch image.pixels in place, keeping the untouched pixels in original_pixels."""
        new_pixels = self.apply(image.pixels, regions, params)
        self.image_service.apply_pipeline_modification(image, new_pixels)
        return image
