"""Core package - Domain models, constants and errors."""

from .models import (
    BoundingBox,
    PixelRect,
    OCRWord,
    WordToken,
    StyleRecord,
    TextRegion,
    ImageArtifact,
    RemovalFailure,
    RemovalOutcome,
    DEFAULT_STYLE,
)
from .constants import (
    GroupingThresholds,
    StyleThresholds,
    FontFamily,
    FontWeight,
    DEFAULT_GROUPING_THRESHOLDS,
    DEFAULT_STYLE_THRESHOLDS,
    DEFAULT_BBOX_PADDING,
)
from .exceptions import (
    PhotoTextError,
    InvalidBoundingBoxError,
    ImageDecodeError,
    OCRError,
    NoImageLoadedError,
    RemovalServiceError,
    RemovalFailureKind,
)

__all__ = [
    'BoundingBox',
    'PixelRect',
    'OCRWord',
    'WordToken',
    'StyleRecord',
    'TextRegion',
    'ImageArtifact',
    'RemovalFailure',
    'RemovalOutcome',
    'DEFAULT_STYLE',
    'GroupingThresholds',
    'StyleThresholds',
    'FontFamily',
    'FontWeight',
    'DEFAULT_GROUPING_THRESHOLDS',
    'DEFAULT_STYLE_THRESHOLDS',
    'DEFAULT_BBOX_PADDING',
    'PhotoTextError',
    'InvalidBoundingBoxError',
    'ImageDecodeError',
    'OCRError',
    'NoImageLoadedError',
    'RemovalServiceError',
    'RemovalFailureKind',
]
