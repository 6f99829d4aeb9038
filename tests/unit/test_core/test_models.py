"""
Unit tests for core.models module.
"""
import dataclasses

import pytest
from PIL import Image

from core.exceptions import InvalidBoundingBoxError, RemovalFailureKind
from core.models import (
    DEFAULT_STYLE,
    BoundingBox,
    ImageArtifact,
    PixelRect,
    RemovalOutcome,
    StyleRecord,
    TextRegion,
)


class TestBoundingBox:
    """Tests for BoundingBox dataclass."""

    def test_initialization(self):
        """Test creating BoundingBox."""
        bbox = BoundingBox(x0=10, y0=20, x1=60, y1=80)

        assert bbox.x0 == 10
        assert bbox.y0 == 20
        assert bbox.x1 == 60
        assert bbox.y1 == 80

    def test_dimensions(self):
        """Test width, height and area."""
        bbox = BoundingBox(10, 20, 60, 80)

        assert bbox.width == 50
        assert bbox.height == 60
        assert bbox.area == 3000

    @pytest.mark.parametrize("coords", [
        (10, 10, 10, 20),
        (10, 20, 30, 20),
        (30, 10, 10, 20),
        (-1, 0, 10, 10),
        (0, 0, 100.5, 10),
        (0, float('nan'), 10, 10),
    ])
    def test_rejects_invalid(self, coords):
        """Invalid boxes are never constructed."""
        with pytest.raises(InvalidBoundingBoxError):
            BoundingBox(*coords)

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            BoundingBox(5, 5, 5, 5)

    def test_try_create(self):
        assert BoundingBox.try_create(0, 0, 0, 10) is None
        assert BoundingBox.try_create(0, 0, 100, 100) == BoundingBox(0, 0, 100, 100)

    def test_union_contains_both(self):
        a = BoundingBox(10, 10, 30, 20)
        b = BoundingBox(31, 8, 55, 22)

        union = a.union(b)

        assert union == BoundingBox(10, 8, 55, 22)
        assert union.contains(a)
        assert union.contains(b)

    def test_frozen(self):
        bbox = BoundingBox(0, 0, 1, 1)

        with pytest.raises(dataclasses.FrozenInstanceError):
            bbox.x0 = 0.5

    def test_to_dict(self):
        """Test dictionary conversion."""
        result = BoundingBox(5, 10, 55, 60).to_dict()

        assert result == {'x0': 5, 'y0': 10, 'x1': 55, 'y1': 60}


class TestPixelRect:
    """Tests for PixelRect dataclass."""

    def test_to_tuple(self):
        rect = PixelRect(1, 2, 30, 40)

        assert rect.to_tuple() == (1, 2, 30, 40)
        assert rect.width == 29
        assert rect.height == 38


class TestStyleRecord:
    """Tests for StyleRecord dataclass."""

    def test_default_style(self):
        """Default style matches the documented safe values."""
        assert DEFAULT_STYLE.font_size == 16
        assert DEFAULT_STYLE.font_weight == "normal"
        assert DEFAULT_STYLE.font_family == "Arial"
        assert DEFAULT_STYLE.fill == "#000000"
        assert DEFAULT_STYLE.stroke == "transparent"
        assert DEFAULT_STYLE.stroke_width == 0
        assert not DEFAULT_STYLE.has_stroke

    def test_to_dict_uses_rendering_keys(self):
        result = StyleRecord.default().to_dict()

        assert set(result) == {
            'fontFamily', 'fontSize', 'fontWeight', 'fill',
            'stroke', 'strokeWidth', 'lineHeight', 'letterSpacing'
        }
        assert result['fontSize'] == 16


class TestTextRegion:
    """Tests for TextRegion dataclass."""

    def test_with_style_returns_new_value(self):
        """Attaching a style never mutates the original region."""
        region = TextRegion(id="r-0", text="Hi", bbox=BoundingBox(0, 0, 10, 10), confidence=90)

        styled = region.with_style(DEFAULT_STYLE)

        assert region.style is None
        assert styled.style == DEFAULT_STYLE
        assert styled.text == region.text
        assert styled is not region

    def test_to_dict(self):
        region = TextRegion(id="r-1", text="Hi", bbox=BoundingBox(0, 0, 10, 10), confidence=90)

        result = region.to_dict()

        assert result['id'] == "r-1"
        assert result['bbox'] == {'x0': 0, 'y0': 0, 'x1': 10, 'y1': 10}
        assert result['style'] is None


class TestImageArtifact:
    """Tests for ImageArtifact dataclass."""

    def test_dimensions_and_unique_ids(self):
        img = Image.new('RGB', (40, 30))

        a = ImageArtifact(image=img)
        b = ImageArtifact(image=img)

        assert (a.width, a.height) == (40, 30)
        assert a.id != b.id


class TestRemovalOutcome:
    """Tests for RemovalOutcome dataclass."""

    def test_failed(self):
        outcome = RemovalOutcome.failed(RemovalFailureKind.NO_VALID_REGIONS, "No valid regions to remove")

        assert not outcome.ok
        assert outcome.artifact is None
        assert outcome.failure.kind == RemovalFailureKind.NO_VALID_REGIONS

    def test_success(self):
        outcome = RemovalOutcome(artifact=ImageArtifact(image=Image.new('RGB', (2, 2))), boxes_sent=3)

        assert outcome.ok
        assert outcome.boxes_sent == 3
