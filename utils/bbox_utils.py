"""
Bounding box utilities for the text-region pipeline.

Converts boxes between OCR pixel space, the canonical percentage space and
any consumer's pixel space, and draws region boxes for previews. Every
consumer of region geometry goes through these functions so all of them see
the same pixels.
"""
import math
from typing import Iterable, List, Optional, Sequence

from loguru import logger
from PIL import Image, ImageDraw, ImageFont

from core.constants import DEFAULT_BBOX_PADDING
from core.exceptions import InvalidBoundingBoxError
from core.models import BoundingBox, OCRWord, PixelRect, TextRegion, WordToken


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def normalize_bbox(
    word: OCRWord,
    img_width: int,
    img_height: int,
    padding: float = DEFAULT_BBOX_PADDING
) -> BoundingBox:
    """
    Convert an OCR word's pixel box to percentage space.

    Each side is pushed outward by ``padding`` percentage points to offset
    OCR under-detection, then clamped to [0, 100].

    Args:
        word: OCR word with pixel coordinates
        img_width: Source image width in pixels
        img_height: Source image height in pixels
        padding: Expansion per side in percentage points

    Returns:
        BoundingBox in percentage units

    Raises:
        InvalidBoundingBoxError: If the image size is not positive or the
            box is degenerate after clamping
    """
    if img_width <= 0 or img_height <= 0:
        raise InvalidBoundingBoxError(
            f"Invalid image dimensions: {img_width}x{img_height}"
        )

    x0 = word.x0 / img_width * 100 - padding
    y0 = word.y0 / img_height * 100 - padding
    x1 = word.x1 / img_width * 100 + padding
    y1 = word.y1 / img_height * 100 + padding

    if word.x1 <= word.x0 or word.y1 <= word.y0:
        raise InvalidBoundingBoxError(
            f"Degenerate OCR box for '{word.text}': "
            f"({word.x0}, {word.y0}, {word.x1}, {word.y1})"
        )

    return BoundingBox(
        _clamp(x0, 0.0, 100.0),
        _clamp(y0, 0.0, 100.0),
        _clamp(x1, 0.0, 100.0),
        _clamp(y1, 0.0, 100.0),
    )


def normalize_words(
    words: Iterable[OCRWord],
    img_width: int,
    img_height: int,
    padding: float = DEFAULT_BBOX_PADDING
) -> List[WordToken]:
    """
    Turn raw OCR words into WordTokens, skipping anything unusable.

    Returns:
        List of tokens with ids ``word-<n>`` in input order
    """
    tokens = []
    for word in words:
        text = (word.text or "").strip()
        if not text:
            continue
        try:
            bbox = normalize_bbox(word, img_width, img_height, padding)
            confidence = _clamp(float(word.confidence), 0.0, 100.0)
        except (ValueError, TypeError) as e:
            logger.debug(f"Skipping OCR word '{text}': {e}")
            continue
        tokens.append(WordToken(
            id=f"word-{len(tokens)}",
            text=text,
            bbox=bbox,
            confidence=confidence
        ))
    return tokens


def denormalize_bbox(
    bbox: BoundingBox,
    target_width: int,
    target_height: int
) -> Optional[PixelRect]:
    """
    Convert a percentage box to integer pixels for a target surface.

    Coordinates are rounded to the nearest integer and clamped to the target
    bounds.

    Args:
        bbox: BoundingBox in percentage units
        target_width: Target width in pixels
        target_height: Target height in pixels

    Returns:
        PixelRect, or None when the result has no positive area (callers
        drop such boxes)
    """
    if target_width <= 0 or target_height <= 0:
        return None

    x0 = int(_clamp(round_half_up(bbox.x0 / 100 * target_width), 0, target_width))
    y0 = int(_clamp(round_half_up(bbox.y0 / 100 * target_height), 0, target_height))
    x1 = int(_clamp(round_half_up(bbox.x1 / 100 * target_width), 0, target_width))
    y1 = int(_clamp(round_half_up(bbox.y1 / 100 * target_height), 0, target_height))

    if x1 - x0 <= 0 or y1 - y0 <= 0:
        return None

    return PixelRect(x0, y0, x1, y1)


def is_within_bounds(rect: PixelRect, width: int, height: int) -> bool:
    """Check a pixel rect is non-empty and inside a width x height surface."""
    return (
        rect.x1 > rect.x0 and rect.y1 > rect.y0
        and rect.x0 >= 0 and rect.y0 >= 0
        and rect.x1 <= width and rect.y1 <= height
    )


def draw_region_boxes(
    image: Image.Image,
    regions: Sequence[TextRegion],
    color: tuple = (255, 0, 0),
    width: int = 2
) -> Image.Image:
    """
    Draw region outlines and index labels on a copy of the image.

    Args:
        image: PIL Image to annotate (left untouched)
        regions: Regions in percentage space
        color: Outline RGB color
        width: Outline width in pixels

    Returns:
        Annotated RGB copy
    """
    img_draw = image.convert('RGB')
    draw = ImageDraw.Draw(img_draw)
    font = ImageFont.load_default()
    img_width, img_height = img_draw.size

    for index, region in enumerate(regions):
        rect = denormalize_bbox(region.bbox, img_width, img_height)
        if rect is None:
            continue

        draw.rectangle([rect.x0, rect.y0, rect.x1, rect.y1], outline=color, width=width)

        label = str(index)
        text_bbox = draw.textbbox((0, 0), label, font=font)
        tw = text_bbox[2] - text_bbox[0]
        th = text_bbox[3] - text_bbox[1]
        ty = max(0, rect.y0 - th - 4)
        draw.rectangle([rect.x0, ty, rect.x0 + tw + 4, ty + th + 4], fill=color)
        draw.text((rect.x0 + 2, ty + 2), label, font=font, fill=(255, 255, 255))

    return img_draw
