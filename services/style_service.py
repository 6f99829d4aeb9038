"""
Style Service - Infers a rendering style for each text region.

OCR gives no font information, so style is approximated from geometry and
the pixels under the region: text/background colors from an edge-vs-center
sample split, contrast from WCAG luminance, and weight, family, spacing and
stroke from size/confidence bands.
"""
import asyncio
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np
from loguru import logger
from PIL import Image

from core.constants import (
    BRIGHTNESS_WEIGHTS,
    DEFAULT_STYLE_THRESHOLDS,
    NO_STROKE,
    FontFamily,
    FontWeight,
    StyleThresholds,
)
from core.exceptions import PhotoTextError
from core.models import DEFAULT_STYLE, PixelRect, StyleRecord, TextRegion
from utils.bbox_utils import denormalize_bbox, round_half_up
from utils.color_utils import (
    BLACK,
    WHITE,
    brightness,
    contrast_ratio,
    opposite_of,
    rgb_to_hex,
)
from utils.image_utils import to_rgba_array


class EmptySampleError(PhotoTextError):
    """Raised when a region yields no usable pixels."""


@dataclass(frozen=True)
class ColorEstimate:
    """Text/background colors sampled from a region."""
    text_color: Tuple[int, int, int]
    background_color: Tuple[int, int, int]
    contrast: float


def _average_color(rgb: np.ndarray) -> Tuple[int, int, int]:
    mean = np.floor(rgb.mean(axis=0) + 0.5).astype(int)
    return int(mean[0]), int(mean[1]), int(mean[2])


class StyleAnalyzer:
    """Heuristic style inference for text regions."""

    def __init__(self, thresholds: StyleThresholds = DEFAULT_STYLE_THRESHOLDS):
        """
        Initialize the analyzer.

        Args:
            thresholds: Heuristic thresholds (defaults documented in
                core.constants.StyleThresholds)
        """
        self.thresholds = thresholds

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze(
        self,
        region: TextRegion,
        image: Image.Image,
        target_width: int,
        target_height: int
    ) -> StyleRecord:
        """
        Infer a style for one region. Never raises.

        Args:
            region: Region in percentage space
            image: Full source image
            target_width: Width of the surface the style is meant for
            target_height: Height of the surface the style is meant for

        Returns:
            StyleRecord, or DEFAULT_STYLE if analysis fails
        """
        try:
            pixels = to_rgba_array(image, target_width, target_height)
        except Exception as e:
            logger.warning(f"Could not decode pixels for '{region.text}': {e}")
            return DEFAULT_STYLE
        return self.analyze_pixels(region, pixels)

    def analyze_pixels(self, region: TextRegion, pixels: np.ndarray) -> StyleRecord:
        """
        Infer a style from an RGBA array already sized to the target surface.

        Never raises; any internal failure yields DEFAULT_STYLE.
        """
        try:
            return self._infer_style(region, pixels)
        except Exception as e:
            logger.warning(f"Style analysis failed for '{region.text}': {e}")
            return DEFAULT_STYLE

    def analyze_region(
        self,
        region: TextRegion,
        image: Image.Image,
        target_width: int,
        target_height: int
    ) -> TextRegion:
        """Return a new region carrying a freshly inferred style."""
        return region.with_style(self.analyze(region, image, target_width, target_height))

    def analyze_regions(
        self,
        regions: Sequence[TextRegion],
        image: Image.Image,
        target_width: int,
        target_height: int
    ) -> List[TextRegion]:
        """
        Style every region, decoding the image once.

        Returns:
            New regions in the same order, each with a style attached
        """
        pixels = self._decode(image, target_width, target_height)
        if pixels is None:
            return [r.with_style(DEFAULT_STYLE) for r in regions]
        return [r.with_style(self.analyze_pixels(r, pixels)) for r in regions]

    async def analyze_regions_async(
        self,
        regions: Sequence[TextRegion],
        image: Image.Image,
        target_width: int,
        target_height: int
    ) -> List[TextRegion]:
        """
        Style every region in worker threads.

        The result is returned only once every region has been analyzed.
        """
        pixels = await asyncio.to_thread(self._decode, image, target_width, target_height)
        if pixels is None:
            return [r.with_style(DEFAULT_STYLE) for r in regions]

        styles = await asyncio.gather(*(
            asyncio.to_thread(self.analyze_pixels, region, pixels)
            for region in regions
        ))
        return [region.with_style(style) for region, style in zip(regions, styles)]

    # ------------------------------------------------------------------
    # Color sampling
    # ------------------------------------------------------------------

    def extract_colors(self, pixels: np.ndarray, rect: PixelRect) -> ColorEstimate:
        """
        Estimate text and background colors inside a pixel rect.

        Samples every ``sample_step`` pixel with alpha above ``min_alpha``
        and splits them into an edge band and a center area. The partition
        whose brightness is further from mid-gray is taken as the text.

        Raises:
            EmptySampleError: If no opaque pixels were sampled
        """
        t = self.thresholds
        step = t.sample_step
        crop = pixels[rect.y0:rect.y1:step, rect.x0:rect.x1:step]
        if crop.size == 0:
            raise EmptySampleError(f"Empty pixel rect {rect.to_tuple()}")

        ys, xs = np.mgrid[0:crop.shape[0], 0:crop.shape[1]]
        xs = xs * step
        ys = ys * step

        mask = crop[..., 3] > t.min_alpha
        if not mask.any():
            raise EmptySampleError(f"No opaque pixels in {rect.to_tuple()}")

        rgb = crop[..., :3][mask].astype(float)
        xs = xs[mask]
        ys = ys[mask]
        sample_brightness = rgb @ np.asarray(BRIGHTNESS_WEIGHTS)

        width, height = rect.width, rect.height
        distance = np.hypot(xs - width / 2, ys - height / 2)
        edge = (
            (distance > min(width, height) * t.edge_radius)
            | (xs < width * t.edge_band) | (xs > width * (1 - t.edge_band))
            | (ys < height * t.edge_band) | (ys > height * (1 - t.edge_band))
        )

        midpoint = t.brightness_midpoint
        if edge.any() and (~edge).any():
            edge_avg = _average_color(rgb[edge])
            center_avg = _average_color(rgb[~edge])
            if abs(brightness(edge_avg) - midpoint) > abs(brightness(center_avg) - midpoint):
                text_color, background = edge_avg, center_avg
            else:
                text_color, background = center_avg, edge_avg
        else:
            dark = sample_brightness < midpoint
            light = ~dark
            if dark.any() and light.any():
                dark_avg = _average_color(rgb[dark])
                light_avg = _average_color(rgb[light])
                # Minority cluster is the text
                if dark.sum() < light.sum():
                    text_color, background = dark_avg, light_avg
                else:
                    text_color, background = light_avg, dark_avg
            else:
                background = _average_color(rgb)
                text_color = BLACK if brightness(background) > midpoint else WHITE

        contrast = contrast_ratio(text_color, background)
        if contrast < t.min_contrast:
            text_color = BLACK if brightness(text_color) > midpoint else WHITE

        return ColorEstimate(
            text_color=text_color,
            background_color=background,
            contrast=contrast
        )

    # ------------------------------------------------------------------
    # Heuristic classifiers
    # ------------------------------------------------------------------

    def font_size(self, height_px: float) -> int:
        return max(round_half_up(height_px * self.thresholds.font_size_ratio),
                   self.thresholds.min_font_size)

    def detect_font_weight(
        self,
        text: str,
        font_size: int,
        confidence: float,
        contrast: float,
        width_px: float,
        height_px: float
    ) -> str:
        """Bold/normal from size, confidence, shape, case and contrast."""
        t = self.thresholds
        aspect_ratio = width_px / height_px if height_px > 0 else 0.0

        # Headers: large and confidently read
        if font_size > t.bold_large_font and confidence > t.bold_large_confidence:
            return FontWeight.BOLD.value
        if aspect_ratio > t.bold_wide_aspect and contrast > t.bold_wide_contrast:
            return FontWeight.BOLD.value
        if text == text.upper() and len(text) > t.bold_caps_min_length and font_size > t.bold_caps_font:
            return FontWeight.BOLD.value
        if font_size < t.bold_small_font and contrast > t.bold_small_contrast:
            return FontWeight.BOLD.value
        # Short labels
        if (len(text) < t.bold_short_length and confidence > t.bold_short_confidence
                and font_size > t.bold_short_font):
            return FontWeight.BOLD.value

        return FontWeight.NORMAL.value

    def detect_font_family(
        self,
        text: str,
        font_size: int,
        confidence: float,
        width_px: float,
        height_px: float
    ) -> str:
        """Pick a family from the closed FontFamily set."""
        t = self.thresholds
        char_width = width_px / max(len(text), 1)
        char_aspect = char_width / max(height_px, 1)

        if t.mono_aspect_min < char_aspect < t.mono_aspect_max and len(text) > t.mono_min_length:
            return FontFamily.MONOSPACE.value
        if font_size < t.sans_max_font and confidence > t.sans_min_confidence:
            return FontFamily.PLAIN_SANS.value
        if (font_size > t.serif_min_font and confidence > t.serif_min_confidence
                and len(text) > t.serif_min_length):
            return FontFamily.SERIF.value
        if font_size > t.display_min_font:
            if len(text) < t.display_short_length:
                return FontFamily.DISPLAY_HEAVY.value
            return FontFamily.DISPLAY_BOLD.value

        return FontFamily.PLAIN_SANS.value

    def letter_spacing(self, text: str, width_px: float, font_size: int) -> int:
        """Spacing from the ratio of actual to expected text width."""
        t = self.thresholds
        expected = max(len(text), 1) * font_size * t.char_width_factor
        ratio = width_px / max(expected, 1)

        for min_ratio, spacing in t.spacing_bands:
            if ratio > min_ratio:
                return spacing
        if ratio < t.tight_ratio:
            return t.tight_spacing
        return 0

    def stroke_for(self, text_color: Tuple[int, int, int], contrast: float, font_size: int) -> Tuple[str, float]:
        """Outline color and width; only low-contrast text gets one."""
        t = self.thresholds
        if contrast >= t.stroke_contrast:
            return NO_STROKE, 0.0

        thin, medium, thick = t.stroke_widths
        if font_size < t.stroke_thin_below:
            width = thin
        elif font_size > t.stroke_thick_above:
            width = thick
        else:
            width = medium
        return rgb_to_hex(opposite_of(text_color, t.brightness_midpoint)), width

    def line_height(self, font_size: int) -> float:
        t = self.thresholds
        small, normal, large = t.line_heights
        if font_size < t.line_height_small_below:
            return small
        if font_size > t.line_height_large_above:
            return large
        return normal

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _decode(self, image: Image.Image, width: int, height: int):
        try:
            return to_rgba_array(image, width, height)
        except Exception as e:
            logger.warning(f"Could not decode image for style analysis: {e}")
            return None

    def _infer_style(self, region: TextRegion, pixels: np.ndarray) -> StyleRecord:
        img_height, img_width = pixels.shape[:2]
        rect = denormalize_bbox(region.bbox, img_width, img_height)
        if rect is None:
            raise EmptySampleError(f"Region '{region.text}' collapses below one pixel")

        width_px = region.bbox.width / 100 * img_width
        height_px = region.bbox.height / 100 * img_height
        font_size = self.font_size(height_px)

        colors = self.extract_colors(pixels, rect)
        text = region.text

        stroke, stroke_width = self.stroke_for(colors.text_color, colors.contrast, font_size)

        return StyleRecord(
            font_family=self.detect_font_family(
                text, font_size, region.confidence, width_px, height_px
            ),
            font_size=font_size,
            font_weight=self.detect_font_weight(
                text, font_size, region.confidence, colors.contrast, width_px, height_px
            ),
            fill=rgb_to_hex(colors.text_color),
            stroke=stroke,
            stroke_width=stroke_width,
            line_height=self.line_height(font_size),
            letter_spacing=self.letter_spacing(text, width_px, font_size),
        )
