"""
Pytest configuration and global fixtures.
"""
import sys
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.models import BoundingBox, OCRWord, TextRegion, WordToken
from services.ocr_service import BaseOCREngine


class FakeOCREngine(BaseOCREngine):
    """OCR engine returning a fixed word list."""

    def __init__(self, words=None, error=None):
        self.words = list(words or [])
        self.error = error
        self.calls = 0
        self.sizes = []

    def recognize(self, image):
        self.calls += 1
        self.sizes.append(image.size)
        if self.error is not None:
            raise self.error
        return list(self.words)


def make_token(text, x0, y0, x1, y1, confidence=90.0, token_id=None):
    """Build a WordToken in percentage space."""
    return WordToken(
        id=token_id or f"t-{text}-{x0}-{y0}",
        text=text,
        bbox=BoundingBox(x0, y0, x1, y1),
        confidence=confidence
    )


def make_region(text, x0, y0, x1, y1, confidence=90.0, region_id="r-0"):
    """Build a TextRegion in percentage space."""
    return TextRegion(
        id=region_id,
        text=text,
        bbox=BoundingBox(x0, y0, x1, y1),
        confidence=confidence
    )


@pytest.fixture
def temp_dir(tmp_path):
    """Provide temporary directory for test files."""
    return tmp_path


@pytest.fixture
def text_image():
    """
    200x100 white image with a black bar standing in for dark text.

    The bar covers pixels (40..160, 30..70), i.e. 20-80% x 30-70%.
    """
    img = Image.new('RGB', (200, 100), color='white')
    draw = ImageDraw.Draw(img)
    draw.rectangle([40, 30, 159, 69], fill=(0, 0, 0))
    return img


@pytest.fixture
def sample_image_path(temp_dir, text_image):
    """Save the text image to disk."""
    img_path = temp_dir / "test_image.png"
    text_image.save(img_path)
    return str(img_path)


@pytest.fixture
def transparent_image():
    """Fully transparent RGBA image."""
    return Image.new('RGBA', (100, 100), color=(0, 0, 0, 0))


@pytest.fixture
def hello_world_words():
    """OCR words for 'HELLO WORLD' on a 1000x500 image."""
    return [
        OCRWord(text="HELLO", x0=100, y0=50, x1=300, y1=100, confidence=90),
        OCRWord(text="WORLD", x0=310, y0=50, x1=550, y1=100, confidence=88),
    ]


@pytest.fixture
def fake_ocr_engine(hello_world_words):
    return FakeOCREngine(hello_world_words)
