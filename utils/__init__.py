"""Utilities package - Helper functions for image, bbox, and color processing."""

from .image_utils import (
    decode_image_bytes,
    load_image,
    create_artifact,
    encode_image,
    decode_data_url,
    downscale_image,
    to_rgba_array,
)

from .bbox_utils import (
    normalize_bbox,
    normalize_words,
    denormalize_bbox,
    is_within_bounds,
    draw_region_boxes,
)

from .color_utils import (
    brightness,
    relative_luminance,
    contrast_ratio,
    rgb_to_hex,
)

__all__ = [
    # Image utils
    'decode_image_bytes',
    'load_image',
    'create_artifact',
    'encode_image',
    'decode_data_url',
    'downscale_image',
    'to_rgba_array',

    # BBox utils
    'normalize_bbox',
    'normalize_words',
    'denormalize_bbox',
    'is_within_bounds',
    'draw_region_boxes',

    # Color utils
    'brightness',
    'relative_luminance',
    'contrast_ratio',
    'rgb_to_hex',
]
