"""
Exception types raised across the pipeline.
"""
from enum import Enum


class RemovalFailureKind(str, Enum):
    """Typed causes for a failed text-removal request."""
    NO_VALID_REGIONS = "no_valid_regions"
    UNAVAILABLE = "unavailable"
    INVALID_RESPONSE = "invalid_response"
    VALIDATION_FAILURE = "validation_failure"
    BUSY = "busy"


class PhotoTextError(Exception):
    """Base class for pipeline errors."""


class InvalidBoundingBoxError(PhotoTextError, ValueError):
    """Raised when a bounding box is degenerate or out of range."""


class ImageDecodeError(PhotoTextError):
    """Raised when image bytes cannot be decoded."""


class OCRError(PhotoTextError):
    """Raised when the OCR engine fails."""


class NoImageLoadedError(PhotoTextError):
    """Raised when an operation needs an image and the session has none."""


class RemovalServiceError(PhotoTextError):
    """Raised by the removal client; carries a typed cause."""

    def __init__(self, kind: RemovalFailureKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"
