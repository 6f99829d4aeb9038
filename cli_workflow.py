#!/usr/bin/env python3
"""
CLI workflow runner for the text-region pipeline.

Detects and styles text regions on an image and optionally removes the
original text through the removal service.
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import settings
from core.exceptions import ImageDecodeError, OCRError
from services.dependencies import get_editing_session, get_removal_coordinator
from utils.bbox_utils import draw_region_boxes


async def process_image_cli(
    image_path: str,
    json_path: str = None,
    annotate_path: str = None,
    remove: bool = False,
    output_path: str = None,
    service_url: str = None
) -> int:
    """Run detection (and optional removal) on one image. Returns an exit code."""

    print("=" * 60)
    print(f"Processing: {image_path}")
    print("=" * 60)

    coordinator = get_removal_coordinator(settings, base_url=service_url)
    session = get_editing_session(settings, coordinator=coordinator)

    try:
        try:
            artifact = session.load_image(image_path)
        except ImageDecodeError as e:
            logger.error(f"Could not load image: {e}")
            return 1

        print(f"Image size: {artifact.width}x{artifact.height}")

        try:
            regions = await session.detect()
        except OCRError as e:
            logger.error(f"OCR failed: {e}")
            return 1

        regions = regions or ()
        print(f"\n✓ Detected {len(regions)} text regions")
        for index, region in enumerate(regions):
            style = region.style
            print(
                f"  [{index}] {region.text!r} conf={region.confidence:.1f} "
                f"font={style.font_family} {style.font_size}px {style.font_weight} fill={style.fill}"
            )

        if json_path:
            Path(json_path).write_text(
                json.dumps(session.export_regions(), indent=2, ensure_ascii=False),
                encoding="utf-8"
            )
            logger.success(f"Saved regions to: {json_path}")

        if annotate_path:
            draw_region_boxes(artifact.image, regions).save(annotate_path)
            logger.success(f"Saved annotated preview to: {annotate_path}")

        if not remove:
            return 0

        print("\nRemoving text...")
        outcome = await session.remove_text()
        if not outcome.ok:
            print(f"⚠️  Text removal failed ({outcome.failure.kind.value}): {outcome.failure.message}")
            return 1

        target = output_path or str(Path(image_path).with_name(Path(image_path).stem + "_clean.png"))
        outcome.artifact.image.save(target)
        logger.success(f"Saved cleaned image to: {target}")
        return 0
    finally:
        await coordinator.close()


def main():
    parser = argparse.ArgumentParser(
        description="Detect styled text regions and remove the original text"
    )
    parser.add_argument("image", help="Path to the input image")
    parser.add_argument("--json", dest="json_path", help="Write regions as JSON")
    parser.add_argument("--annotate", dest="annotate_path", help="Write a preview with region boxes")
    parser.add_argument("--remove", action="store_true", help="Remove detected text via the removal service")
    parser.add_argument("--output", dest="output_path", help="Path for the cleaned image")
    parser.add_argument("--service-url", help="Override the removal service URL")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "INFO")

    exit_code = asyncio.run(process_image_cli(
        image_path=args.image,
        json_path=args.json_path,
        annotate_path=args.annotate_path,
        remove=args.remove,
        output_path=args.output_path,
        service_url=args.service_url
    ))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
