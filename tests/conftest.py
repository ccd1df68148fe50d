from io import BytesIO

import numpy as np
import pytest
from PIL import Image as PILImage

from patchfill.models.image import Image
from patchfill.services.compositor_service import CompositorService
from patchfill.services.feather_service import FeatherService
from patchfill.services.image_service import ImageService
from patchfill.services.patch_fill_service import PatchFillService
from patchfill.services.region_service import RegionService
from patchfill.services.source_selector_service import SourceSelectorService


@pytest.fixture
def white_buffer():
    return np.full((100, 100, 3), 255, dtype=np.uint8)


@pytest.fixture
def noise_buffer():
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(100, 120, 3), dtype=np.uint8)


@pytest.fixture
def coord_buffer():
    """pixels[y, x] == (x, y, 7), so every pixel names its own position."""
    ys, xs = np.mgrid[0:100, 0:100]
    return np.dstack([xs, ys, np.full_like(xs, 7)]).astype(np.uint8)


@pytest.fixture
def region_service():
    return RegionService()


@pytest.fixture
def selector():
    return SourceSelectorService(gap_ratio=0.12, min_gap=2, overlap_weight=400)


@pytest.fixture
def compositor():
    return CompositorService()


@pytest.fixture
def feather_service():
    return FeatherService(alpha=0.55)


@pytest.fixture
def patch_fill_service():
    return PatchFillService()


@pytest.fixture
def image_service():
    return ImageService()


@pytest.fixture
def noise_image(noise_buffer):
    return Image(pixels=noise_buffer.copy())


def _encode_png(pixels: np.ndarray) -> bytes:
    buffer = BytesIO()
    PILImage.fromarray(pixels).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes(noise_buffer):
    return _encode_png(noise_buffer)


@pytest.fixture
def encode_png():
    return _encode_png
