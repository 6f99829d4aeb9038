"""
Unit tests for utils.image_utils module.
"""
import base64

import pytest
from PIL import Image

from core.exceptions import ImageDecodeError
from utils.image_utils import (
    create_artifact,
    decode_data_url,
    decode_image_bytes,
    downscale_image,
    encode_image,
    load_image,
    to_rgba_array,
)


def png_data_url(image):
    return "data:image/png;base64," + base64.b64encode(encode_image(image)).decode()


class TestDecodeImageBytes:
    """Tests for decode_image_bytes function."""

    def test_round_trip_png(self, text_image):
        decoded = decode_image_bytes(encode_image(text_image))

        assert decoded.size == text_image.size
        assert decoded.getpixel((100, 50)) == (0, 0, 0)

    @pytest.mark.parametrize("data", [b"", b"not an image at all"])
    def test_corrupt_data(self, data):
        with pytest.raises(ImageDecodeError):
            decode_image_bytes(data)


class TestLoadImage:
    """Tests for load_image function."""

    def test_from_path(self, sample_image_path):
        img = load_image(sample_image_path)

        assert img.size == (200, 100)

    def test_missing_file(self, temp_dir):
        with pytest.raises(ImageDecodeError):
            load_image(str(temp_dir / "missing.png"))

    def test_from_data_url(self, text_image):
        img = load_image(png_data_url(text_image))

        assert img.size == text_image.size

    def test_pil_source_is_copied(self, text_image):
        img = load_image(text_image)

        assert img is not text_image


class TestDataUrl:
    """Tests for data URL helpers."""

    def test_invalid_url(self):
        with pytest.raises(ImageDecodeError):
            decode_data_url("not-a-data-url")

    def test_invalid_payload(self):
        with pytest.raises(ImageDecodeError):
            decode_data_url("data:image/png;base64,@@@@")


class TestDownscaleImage:
    """Tests for downscale_image function."""

    def test_shrinks_copy(self):
        img = Image.new('RGB', (400, 200))

        small = downscale_image(img, 100)

        assert small.size == (100, 50)
        assert img.size == (400, 200)

    @pytest.mark.parametrize("max_size", [0, 400, 1000])
    def test_no_op(self, max_size):
        img = Image.new('RGB', (400, 200))

        assert downscale_image(img, max_size) is img


class TestArtifactAndPixels:
    """Tests for create_artifact and to_rgba_array."""

    def test_create_artifact(self, sample_image_path):
        artifact = create_artifact(sample_image_path)

        assert (artifact.width, artifact.height) == (200, 100)

    def test_rgba_array_shape(self, text_image):
        pixels = to_rgba_array(text_image)

        assert pixels.shape == (100, 200, 4)
        assert tuple(pixels[50, 100]) == (0, 0, 0, 255)

    def test_rgba_array_resized(self, text_image):
        pixels = to_rgba_array(text_image, 100, 50)

        assert pixels.shape == (50, 100, 4)
