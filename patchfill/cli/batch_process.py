"""
Batch watermark removal: apply the same percent region to every image of a
folder and write `<name>-clean.<fmt>` files into the output folder.
"""
from __future__ import annotations
import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from tqdm import tqdm

# Load environment variables first
load_dotenv()

from ..models.errors import EngineError
from ..models.rect import Direction, PercentRegion
from ..pipeline.watermark_remover import DEFAULT_FEATHER, DEFAULT_PASSES, DEFAULT_QUALITY, remove_watermark
from ..services.image_service import ImageService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="patchfill-batch", description=__doc__.strip().splitlines()[0])
    ap.add_argument("src", type=Path, help="folder with input images")
    ap.add_argument("dst", type=Path, help="folder for cleaned images")
    ap.add_argument("--x", type=float, default=30.0, help="area left edge, %% of width")
    ap.add_argument("--y", type=float, default=30.0, help="area top edge, %% of height")
    ap.add_argument("--width", type=float, default=32.0, help="area width, %% of width")
    ap.add_argument("--height", type=float, default=16.0, help="area height, %% of height")
    ap.add_argument("--passes", type=int, default=DEFAULT_PASSES)
    ap.add_argument("--feather", type=int, default=DEFAULT_FEATHER)
    ap.add_argument("--direction", default=Direction.AUTO.value,
                    choices=[d.value for d in Direction])
    ap.add_argument("--format", dest="output_format", default=None,
                    choices=["png", "jpg", "webp"], help="defaults to each input's format")
    ap.add_argument("--quality", type=int, default=DEFAULT_QUALITY)
    ap.add_argument("--recursive", action="store_true")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def process_folder(args: argparse.Namespace, image_service: ImageService = None) -> tuple[int, int]:
    """Returns (written, failed)."""
    image_service = image_service or ImageService()
    area = PercentRegion(x=args.x, y=args.y, width=args.width, height=args.height)
    paths = image_service.list_gallery(args.src, recursive=args.recursive)
    args.dst.mkdir(parents=True, exist_ok=True)

    written = failed = 0
    taken = set()
    for path in tqdm(paths, desc="clean", ncols=70, disable=not paths):
        try:
            image = image_service.load(path)
            result = remove_watermark(
                image,
                area,
                passes=args.passes,
                feather=args.feather,
                direction=args.direction,
                output_format=args.output_format,
                quality=args.quality,
                source_name=path.name,
                image_service=image_service,
            )
        except (EngineError, FileNotFoundError) as err:
            logger.error(f"Skipping {path}: {err}")
            failed += 1
            continue
        # mirror the source subfolder under dst
        out_path = args.dst / path.relative_to(args.src).parent / result.filename
        if out_path in taken:
            logger.error(f"Skipping {path}: {out_path.name} was already written from another file")
            failed += 1
            continue
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(result.data)
        taken.add(out_path)
        written += 1

    logger.info(f"Wrote {written} image(s) to {args.dst}, {failed} failed")
    return written, failed


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else os.getenv("LOG_LEVEL", "INFO"),
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    if not args.src.is_dir():
        logger.error(f"Input folder not found: {args.src}")
        return 2

    _, failed = process_folder(args)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
