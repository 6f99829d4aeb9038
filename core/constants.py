"""
Constants and configuration values for the text-region pipeline.

Every heuristic threshold lives in one of the frozen structures below so the
grouping and style logic can be tuned and tested without touching code.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple


@dataclass(frozen=True)
class GroupingThresholds:
    """Thresholds used by the word grouper (percentage units)."""
    # Tokens under this OCR confidence are dropped
    min_confidence: float = 50.0
    # Tops closer than this sort as one line (then left to right)
    line_sort_tolerance: float = 2.0
    # |A.y0 - B.y0| < max(ratio * avg height, floor)
    same_line_ratio: float = 0.4
    same_line_floor: float = 1.5
    # |hA - hB| < ratio * avg height
    height_ratio: float = 0.6
    # horizontal gap < ratio * max(widthA, widthB)
    proximity_ratio: float = 1.5
    # |confA - confB| < gap
    max_confidence_gap: float = 40.0
    # Merged regions thinner than this are dropped
    min_region_size: float = 0.1


@dataclass(frozen=True)
class StyleThresholds:
    """Thresholds used by the style analyzer (pixel units unless noted)."""
    # Font size
    font_size_ratio: float = 0.85
    min_font_size: int = 10

    # Pixel sampling
    sample_step: int = 2
    min_alpha: int = 200
    edge_band: float = 0.2
    edge_radius: float = 0.3
    brightness_midpoint: float = 128.0

    # Contrast
    min_contrast: float = 3.0
    stroke_contrast: float = 4.0

    # Font weight
    bold_large_font: float = 24
    bold_large_confidence: float = 80
    bold_wide_aspect: float = 8
    bold_wide_contrast: float = 3
    bold_caps_min_length: int = 2
    bold_caps_font: float = 14
    bold_small_font: float = 16
    bold_small_contrast: float = 7
    bold_short_length: int = 10
    bold_short_confidence: float = 85
    bold_short_font: float = 16

    # Font family
    mono_aspect_min: float = 0.45
    mono_aspect_max: float = 0.8
    mono_min_length: int = 3
    sans_max_font: float = 16
    sans_min_confidence: float = 85
    serif_min_font: float = 18
    serif_min_confidence: float = 75
    serif_min_length: int = 5
    display_min_font: float = 28
    display_short_length: int = 8

    # Letter spacing: (min actual/expected ratio, spacing), checked in order
    char_width_factor: float = 0.6
    spacing_bands: Tuple[Tuple[float, int], ...] = ((1.4, 3), (1.25, 2), (1.1, 1))
    tight_ratio: float = 0.85
    tight_spacing: int = -1

    # Stroke width by font size band
    stroke_thin_below: float = 18
    stroke_thick_above: float = 24
    stroke_widths: Tuple[float, float, float] = (0.5, 1.0, 1.5)

    # Line height by font size band
    line_height_small_below: float = 12
    line_height_large_above: float = 24
    line_heights: Tuple[float, float, float] = (1.5, 1.3, 1.1)


class FontFamily(str, Enum):
    """Closed set of font families the analyzer may choose."""
    MONOSPACE = "Courier New"
    PLAIN_SANS = "Arial"
    SERIF = "Georgia"
    DISPLAY_HEAVY = "Impact"
    DISPLAY_BOLD = "Arial Black"


class FontWeight(str, Enum):
    NORMAL = "normal"
    BOLD = "bold"


DEFAULT_GROUPING_THRESHOLDS = GroupingThresholds()
DEFAULT_STYLE_THRESHOLDS = StyleThresholds()

# Expansion applied when normalizing OCR boxes (percentage points per side)
DEFAULT_BBOX_PADDING = 0.5

# Luminance weights for perceived brightness (ITU-R BT.601)
BRIGHTNESS_WEIGHTS = (0.299, 0.587, 0.114)

# WCAG relative luminance weights
LUMINANCE_WEIGHTS = (0.2126, 0.7152, 0.0722)

NO_STROKE = "transparent"

# Safe style used whenever analysis cannot produce a result
DEFAULT_STYLE_VALUES = {
    'font_family': FontFamily.PLAIN_SANS.value,
    'font_size': 16,
    'font_weight': FontWeight.NORMAL.value,
    'fill': '#000000',
    'stroke': NO_STROKE,
    'stroke_width': 0.0,
    'line_height': 1.3,
    'letter_spacing': 0,
}

# Removal service contract
REMOVAL_HEALTH_PATH = "/health"
REMOVAL_ENDPOINT_PATH = "/remove-text"
REMOVAL_IMAGE_FIELD = "image"
REMOVAL_BOXES_FIELD = "bboxes"
