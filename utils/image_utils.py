"""
Image utilities for the text-region pipeline.

Handles image loading, decoding, encoding and pixel access. The PIL Image
wrapped in an ImageArtifact is the canonical representation everywhere.
"""
import base64
import binascii
import re
from io import BytesIO
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from core.exceptions import ImageDecodeError
from core.models import ImageArtifact

DATA_URL_PATTERN = re.compile(r'^data:(?P<mime>[\w/+.-]+)?(;base64)?,(?P<data>.*)$', re.DOTALL)

ImageSource = Union[str, Path, bytes, Image.Image]


def decode_image_bytes(data: bytes) -> Image.Image:
    """
    Decode raw image bytes into a fully loaded PIL Image.

    Raises:
        ImageDecodeError: If the bytes are not a readable image
    """
    if not data:
        raise ImageDecodeError("Empty image data")
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e
    return img


def load_image(source: ImageSource) -> Image.Image:
    """
    Load an image from a path, raw bytes, a data URL or a PIL Image.

    Args:
        source: File path, bytes, ``data:`` URL string or PIL Image

    Returns:
        PIL Image with EXIF orientation applied

    Raises:
        ImageDecodeError: If the source cannot be read or decoded
    """
    if isinstance(source, Image.Image):
        img = source.copy()
    elif isinstance(source, bytes):
        img = decode_image_bytes(source)
    elif isinstance(source, str) and source.startswith('data:'):
        img = decode_data_url(source)
    else:
        try:
            data = Path(source).read_bytes()
        except OSError as e:
            raise ImageDecodeError(f"Could not read image file {source}: {e}") from e
        img = decode_image_bytes(data)

    # Fix EXIF orientation
    return ImageOps.exif_transpose(img)


def downscale_image(image: Image.Image, max_size: int) -> Image.Image:
    """
    Shrink an image so its longer side is at most ``max_size``.

    Returns the image itself when no shrinking is needed (or ``max_size`` is
    0), otherwise a downscaled copy; the input is never modified.
    """
    if not max_size or max(image.size) <= max_size:
        return image
    img = image.copy()
    img.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)
    return img


def create_artifact(source: ImageSource) -> ImageArtifact:
    """Load an image at full size and wrap it in a new ImageArtifact."""
    img = load_image(source)
    return ImageArtifact(image=img, format=img.format or "PNG")


def encode_image(image: Image.Image, format: str = "PNG") -> bytes:
    """Encode a PIL Image to bytes (PNG by default)."""
    if format.upper() in ('JPEG', 'JPG') and image.mode not in ('RGB', 'L'):
        image = image.convert('RGB')
    buf = BytesIO()
    image.save(buf, format=format)
    return buf.getvalue()


def decode_data_url(data_url: str) -> Image.Image:
    """
    Decode a base64 ``data:`` URL into a PIL Image.

    Raises:
        ImageDecodeError: If the URL is malformed or the payload is not an image
    """
    match = DATA_URL_PATTERN.match(data_url)
    if not match:
        raise ImageDecodeError("Invalid image data URL")
    try:
        payload = base64.b64decode(match.group('data'), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Invalid base64 payload: {e}") from e
    return decode_image_bytes(payload)


def to_rgba_array(image: Image.Image, width: int = 0, height: int = 0) -> np.ndarray:
    """
    Convert an image to an RGBA uint8 array, resized to a target surface.

    Args:
        image: PIL Image
        width: Target width (0 keeps the source width)
        height: Target height (0 keeps the source height)

    Returns:
        Array of shape (height, width, 4)
    """
    rgba = image.convert('RGBA')
    target = (width or rgba.size[0], height or rgba.size[1])
    if target != rgba.size:
        rgba = rgba.resize(target, Image.Resampling.BILINEAR)
    return np.asarray(rgba, dtype=np.uint8)
