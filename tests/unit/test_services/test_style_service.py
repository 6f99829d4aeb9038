"""
Unit tests for services.style_service module.
"""
import asyncio

import numpy as np
import pytest
from PIL import Image

from conftest import make_region
from core.constants import FontFamily
from core.models import DEFAULT_STYLE, PixelRect
from services.style_service import EmptySampleError, StyleAnalyzer
from utils.color_utils import BLACK, WHITE


def solid(height, width, color):
    """Opaque RGBA array filled with one color."""
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., :3] = color
    pixels[..., 3] = 255
    return pixels


@pytest.fixture
def analyzer():
    return StyleAnalyzer()


@pytest.fixture
def dark_on_light():
    """100x100 white surface with a black square covering the whole center area."""
    pixels = solid(100, 100, WHITE)
    pixels[19:82, 19:82, :3] = BLACK
    return pixels


class TestExtractColors:
    """Tests for StyleAnalyzer.extract_colors."""

    def test_dark_center_is_text(self, analyzer, dark_on_light):
        colors = analyzer.extract_colors(dark_on_light, PixelRect(0, 0, 100, 100))

        assert colors.text_color == BLACK
        assert colors.contrast > 4

    def test_low_contrast_forces_black_or_white(self, analyzer):
        pixels = solid(100, 100, (140, 140, 140))
        pixels[40:60, 40:60, :3] = 120

        colors = analyzer.extract_colors(pixels, PixelRect(0, 0, 100, 100))

        assert colors.contrast < 3
        assert colors.text_color in (BLACK, WHITE)

    def test_bimodal_fallback_picks_minority(self, analyzer):
        """Regions too thin for a center split use the dark/light clusters."""
        pixels = solid(6, 2, WHITE)
        pixels[2, 0, :3] = BLACK

        colors = analyzer.extract_colors(pixels, PixelRect(0, 0, 2, 6))

        assert colors.text_color == BLACK
        assert colors.background_color == WHITE

    def test_single_color_fallback(self, analyzer):
        pixels = solid(2, 2, (10, 10, 10))

        colors = analyzer.extract_colors(pixels, PixelRect(0, 0, 2, 2))

        assert colors.background_color == (10, 10, 10)
        assert colors.text_color == WHITE

    def test_transparent_pixels_rejected(self, analyzer):
        pixels = np.zeros((20, 20, 4), dtype=np.uint8)

        with pytest.raises(EmptySampleError):
            analyzer.extract_colors(pixels, PixelRect(0, 0, 20, 20))


class TestAnalyze:
    """Tests for full style inference."""

    def test_dark_text_on_white(self, analyzer, text_image):
        region = make_region("Sample", 15, 20, 85, 80)

        style = analyzer.analyze(region, text_image, 200, 100)

        assert style.fill == "#000000"
        assert style.font_family in {f.value for f in FontFamily}

    def test_transparent_image_gives_default(self, analyzer, transparent_image):
        region = make_region("ghost", 10, 10, 90, 90)

        assert analyzer.analyze(region, transparent_image, 100, 100) == DEFAULT_STYLE

    def test_undecodable_image_gives_default(self, analyzer):
        region = make_region("x", 10, 10, 90, 90)

        assert analyzer.analyze(region, "not an image", 100, 100) == DEFAULT_STYLE

    def test_font_size_floor(self, analyzer, dark_on_light):
        region = make_region("tiny", 10, 50, 60, 52)

        style = analyzer.analyze_pixels(region, dark_on_light)

        assert style.font_size >= 10

    def test_font_size_from_target_height(self, analyzer, text_image):
        region = make_region("Sample", 15, 20, 85, 80)

        small = analyzer.analyze(region, text_image, 200, 100)
        large = analyzer.analyze(region, text_image, 400, 200)

        assert small.font_size == 51
        assert large.font_size == 102

    @pytest.mark.parametrize("background,center", [
        (WHITE, BLACK),
        ((140, 140, 140), (120, 120, 120)),
        ((255, 255, 255), (200, 200, 200)),
        ((30, 30, 30), (250, 250, 250)),
    ])
    def test_stroke_only_for_low_contrast(self, analyzer, background, center):
        pixels = solid(100, 100, background)
        pixels[20:80, 20:80, :3] = center
        region = make_region("Label", 0, 0, 100, 100)

        colors = analyzer.extract_colors(pixels, PixelRect(0, 0, 100, 100))
        style = analyzer.analyze_pixels(region, pixels)

        assert style.has_stroke == (colors.contrast < 4)

    def test_analyze_regions_preserves_order(self, analyzer, text_image):
        regions = [
            make_region("first", 15, 20, 85, 80, region_id="a"),
            make_region("second", 0, 0, 10, 10, region_id="b"),
        ]

        styled = analyzer.analyze_regions(regions, text_image, 200, 100)

        assert [r.id for r in styled] == ["a", "b"]
        assert all(r.style is not None for r in styled)
        assert all(r.style is None for r in regions)

    def test_analyze_regions_async(self, analyzer, text_image):
        regions = [
            make_region("first", 15, 20, 85, 80, region_id="a"),
            make_region("second", 0, 0, 10, 10, region_id="b"),
        ]

        styled = asyncio.run(analyzer.analyze_regions_async(regions, text_image, 200, 100))

        assert [r.id for r in styled] == ["a", "b"]
        assert styled[0].style == analyzer.analyze(regions[0], text_image, 200, 100)


class TestClassifiers:
    """Tests for the individual heuristic bands."""

    def test_font_size(self, analyzer):
        assert analyzer.font_size(100) == 85
        assert analyzer.font_size(5) == 10

    def test_bold_for_large_confident_text(self, analyzer):
        assert analyzer.detect_font_weight("Title", 30, 90, 10, 100, 30) == "bold"

    def test_bold_for_caps(self, analyzer):
        assert analyzer.detect_font_weight("ABC", 15, 50, 2, 30, 18) == "bold"

    @pytest.mark.parametrize("text", ["2024", "50%", "NO. 7"])
    def test_caps_rule_counts_caseless_text(self, analyzer, text):
        """Labels without lowercase letters count as uppercase."""
        assert analyzer.detect_font_weight(text, 15, 50, 2, 30, 18) == "bold"

    def test_mixed_case_is_not_caps(self, analyzer):
        assert analyzer.detect_font_weight("Abc", 15, 50, 2, 30, 18) == "normal"

    def test_normal_weight(self, analyzer):
        assert analyzer.detect_font_weight("hello world text", 12, 60, 2, 50, 14) == "normal"

    @pytest.mark.parametrize("args,expected", [
        (("abcd", 12, 50, 40, 16), "Courier New"),
        (("hi", 12, 90, 10, 12), "Arial"),
        (("Chapter", 20, 80, 200, 24), "Georgia"),
        (("SALE", 40, 50, 200, 48), "Impact"),
        (("BIG SALE TODAY", 40, 50, 600, 48), "Arial Black"),
        (("plain", 17, 50, 100, 20), "Arial"),
    ])
    def test_font_family(self, analyzer, args, expected):
        assert analyzer.detect_font_family(*args) == expected

    @pytest.mark.parametrize("width,expected", [
        (27, 3),
        (23, 2),
        (20.5, 1),
        (18, 0),
        (10, -1),
    ])
    def test_letter_spacing(self, analyzer, width, expected):
        assert analyzer.letter_spacing("abc", width, 10) == expected

    def test_no_stroke_for_high_contrast(self, analyzer):
        assert analyzer.stroke_for(BLACK, 5.0, 20) == ("transparent", 0.0)

    @pytest.mark.parametrize("font_size,width", [(12, 0.5), (20, 1.0), (30, 1.5)])
    def test_stroke_width_bands(self, analyzer, font_size, width):
        assert analyzer.stroke_for(BLACK, 2.0, font_size) == ("#ffffff", width)

    @pytest.mark.parametrize("font_size,expected", [(10, 1.5), (16, 1.3), (30, 1.1)])
    def test_line_height(self, analyzer, font_size, expected):
        assert analyzer.line_height(font_size) == expected
