"""
Color helpers: brightness, WCAG luminance/contrast and hex conversion.
"""
from typing import Tuple

from core.constants import BRIGHTNESS_WEIGHTS, LUMINANCE_WEIGHTS

RGB = Tuple[int, int, int]

BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)


def brightness(rgb: RGB) -> float:
    """Perceived brightness on a 0-255 scale."""
    r, g, b = rgb
    wr, wg, wb = BRIGHTNESS_WEIGHTS
    return r * wr + g * wg + b * wb


def relative_luminance(rgb: RGB) -> float:
    """WCAG 2.x relative luminance of an sRGB color."""
    def channel(c: int) -> float:
        normalized = c / 255
        if normalized <= 0.03928:
            return normalized / 12.92
        return ((normalized + 0.055) / 1.055) ** 2.4

    r, g, b = (channel(c) for c in rgb)
    wr, wg, wb = LUMINANCE_WEIGHTS
    return wr * r + wg * g + wb * b


def contrast_ratio(color1: RGB, color2: RGB) -> float:
    """WCAG contrast ratio, from 1 (identical) to 21 (black on white)."""
    l1 = relative_luminance(color1)
    l2 = relative_luminance(color2)
    lighter = max(l1, l2)
    darker = min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def rgb_to_hex(rgb: RGB) -> str:
    """RGB tuple to ``#rrggbb``."""
    return '#{:02x}{:02x}{:02x}'.format(*(int(c) for c in rgb))


def opposite_of(rgb: RGB, midpoint: float = 128.0) -> RGB:
    """Black for bright colors, white for dark ones."""
    return BLACK if brightness(rgb) > midpoint else WHITE
