import numpy as np
import pytest

from patchfill.models.errors import InvalidRegionError
from patchfill.models.image import Image, OutputFormat
from patchfill.models.rect import PercentRegion, RawRect, Rect
from patchfill.pipeline.object_eraser import OUTPUT_NAME, erase_objects
from patchfill.pipeline.watermark_remover import remove_watermark


@pytest.fixture
def wide_image():
    rng = np.random.default_rng(99)
    return Image(pixels=rng.integers(0, 256, size=(100, 200, 3), dtype=np.uint8))


# ─── Watermark remover ───────────────────────────────────────────────
def test_default_area_resolves_to_pixels(wide_image, image_service):
    result = remove_watermark(wide_image, image_service=image_service)
    assert result.regions == [Rect(60, 30, 64, 16)]
    assert (result.width, result.height) == (200, 100)


def test_watermark_only_touches_the_area(wide_image, image_service):
    before = wide_image.pixels.copy()
    result = remove_watermark(wide_image, PercentRegion(10, 20, 25, 30),
                              output_format="png", image_service=image_service)
    target = result.regions[0]

    mask = np.ones(before.shape[:2], dtype=bool)
    mask[target.slices()] = False
    np.testing.assert_array_equal(wide_image.pixels[mask], before[mask])
    np.testing.assert_array_equal(wide_image.original_pixels, before)
    assert not np.array_equal(wide_image.pixels[target.slices()], before[target.slices()])


def test_png_bytes_match_the_patched_image(wide_image, image_service):
    result = remove_watermark(wide_image, output_format="png", image_service=image_service)
    assert result.mime_type == "image/png"
    np.testing.assert_array_equal(image_service.decode(result.data).pixels, wide_image.pixels)


def test_format_follows_the_source(wide_image, image_service):
    assert remove_watermark(wide_image, image_service=image_service).output_format is OutputFormat.JPG

    result = remove_watermark(wide_image, source_name="logo.png", image_service=image_service)
    assert result.output_format is OutputFormat.PNG
    assert result.filename == "logo-clean.png"

    result = remove_watermark(wide_image, source_name="logo.png", output_format="webp",
                              image_service=image_service)
    assert result.filename == "logo-clean.webp"
    assert result.data[:4] == b"RIFF"


def test_nameless_source_gets_placeholder_name(wide_image, image_service):
    assert remove_watermark(wide_image, image_service=image_service).filename == "img0-image-clean.jpg"


def test_out_of_range_percentages_are_clamped(wide_image, image_service):
    result = remove_watermark(wide_image, PercentRegion(-10, 95, 150, 40), image_service=image_service)
    target = result.regions[0]
    assert target.fits(200, 100)
    assert target.x == 0


def test_tiny_area_is_rejected(wide_image, image_service):
    before = wide_image.pixels.copy()
    with pytest.raises(InvalidRegionError):
        remove_watermark(wide_image, PercentRegion(10, 10, 2, 30), image_service=image_service)
    np.testing.assert_array_equal(wide_image.pixels, before)
    assert wide_image.original_pixels is None


def test_bad_direction_is_rejected(wide_image, image_service):
    with pytest.raises(ValueError):
        remove_watermark(wide_image, direction="diagonal", image_service=image_service)


# ─── Object eraser ───────────────────────────────────────────────────
def test_eraser_needs_a_region(noise_image, image_service):
    with pytest.raises(InvalidRegionError):
        erase_objects(noise_image, [], image_service=image_service)


def test_eraser_flips_drag_extents(noise_image, image_service):
    result = erase_objects(noise_image, [RawRect(50, 50, -20, -20)], image_service=image_service)
    assert result.regions == [Rect(30, 30, 20, 20)]
    assert result.filename == OUTPUT_NAME
    assert result.output_format is OutputFormat.PNG
    assert result.data.startswith(b"\x89PNG")


def test_eraser_drops_tiny_regions(noise_image, image_service):
    before = noise_image.pixels.copy()
    result = erase_objects(noise_image, [RawRect(5, 5, 4, 40), RawRect(60, 40, 30, 20)],
                           image_service=image_service)
    assert result.regions == [Rect(60, 40, 30, 20)]
    np.testing.assert_array_equal(noise_image.pixels[:, :50], before[:, :50])


def test_eraser_with_only_tiny_regions_is_a_noop(noise_image, image_service):
    before = noise_image.pixels.copy()
    result = erase_objects(noise_image, [RawRect(5, 5, 3, 3)], image_service=image_service)
    assert result.regions == []
    np.testing.assert_array_equal(noise_image.pixels, before)


def test_eraser_strip_strategy(noise_image, image_service):
    before = noise_image.pixels.copy()
    erase_objects(noise_image, [Rect(40, 40, 20, 20)], strategy="strip",
                  blend_strength=0, image_service=image_service)
    # the 3x3 block sitting 2px up and left of the target, stretched over it
    block = before[38:41, 38:41].reshape(-1, 3)
    patch = noise_image.pixels[40:60, 40:60].reshape(-1, 3)
    assert (patch.min(axis=0) >= block.min(axis=0)).all()
    assert (patch.max(axis=0) <= block.max(axis=0)).all()
