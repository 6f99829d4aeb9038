"""
Core domain models for the text-region pipeline.

These are pure data structures without business logic. Values handed to
consumers are frozen; "changing" one means building a new value.
"""
import math
import uuid
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from PIL import Image

from .constants import DEFAULT_STYLE_VALUES
from .exceptions import InvalidBoundingBoxError, RemovalFailureKind


@dataclass(frozen=True)
class BoundingBox:
    """Bounding box in percentage-of-image units [0, 100]."""
    x0: float
    y0: float
    x1: float
    y1: float

    def __post_init__(self):
        coords = (self.x0, self.y0, self.x1, self.y1)
        if not all(isinstance(c, (int, float)) and math.isfinite(c) for c in coords):
            raise InvalidBoundingBoxError(f"Non-finite bounding box: {coords}")
        if any(c < 0 or c > 100 for c in coords):
            raise InvalidBoundingBoxError(f"Bounding box outside [0, 100]: {coords}")
        if self.x1 <= self.x0 or self.y1 <= self.y0:
            raise InvalidBoundingBoxError(f"Degenerate bounding box: {coords}")

    @classmethod
    def try_create(cls, x0: float, y0: float, x1: float, y1: float) -> Optional["BoundingBox"]:
        """Build a box, returning None instead of raising when invalid."""
        try:
            return cls(x0, y0, x1, y1)
        except InvalidBoundingBoxError:
            return None

    @property
    def width(self) -> float:
        """Calculate width."""
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        """Calculate height."""
        return self.y1 - self.y0

    @property
    def area(self) -> float:
        """Calculate area."""
        return self.width * self.height

    def union(self, other: "BoundingBox") -> "BoundingBox":
        """Smallest box containing both boxes."""
        return BoundingBox(
            min(self.x0, other.x0),
            min(self.y0, other.y0),
            max(self.x1, other.x1),
            max(self.y1, other.y1),
        )

    def contains(self, other: "BoundingBox") -> bool:
        return (
            self.x0 <= other.x0 and self.y0 <= other.y0
            and self.x1 >= other.x1 and self.y1 >= other.y1
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'x0': self.x0,
            'y0': self.y0,
            'x1': self.x1,
            'y1': self.y1
        }


@dataclass(frozen=True)
class PixelRect:
    """Integer rectangle in a consumer's pixel space."""
    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    def to_tuple(self) -> Tuple[int, int, int, int]:
        """Four-integer tuple as sent to the removal service."""
        return (self.x0, self.y0, self.x1, self.y1)


@dataclass
class OCRWord:
    """One recognized word as produced by an OCR engine (pixel coordinates)."""
    text: str
    x0: float
    y0: float
    x1: float
    y1: float
    confidence: float


@dataclass(frozen=True)
class WordToken:
    """An OCR word whose box has been normalized to percentage space."""
    id: str
    text: str
    bbox: BoundingBox
    confidence: float


@dataclass(frozen=True)
class StyleRecord:
    """Rendering style inferred for a text region."""
    font_family: str
    font_size: int
    font_weight: str
    fill: str
    stroke: str
    stroke_width: float
    line_height: float
    letter_spacing: int

    @classmethod
    def default(cls) -> "StyleRecord":
        """Safe style used when analysis fails."""
        return cls(**DEFAULT_STYLE_VALUES)

    @property
    def has_stroke(self) -> bool:
        return self.stroke_width > 0

    def to_dict(self) -> dict:
        """Convert to the rendering surface's key names."""
        return {
            'fontFamily': self.font_family,
            'fontSize': self.font_size,
            'fontWeight': self.font_weight,
            'fill': self.fill,
            'stroke': self.stroke,
            'strokeWidth': self.stroke_width,
            'lineHeight': self.line_height,
            'letterSpacing': self.letter_spacing,
        }


DEFAULT_STYLE = StyleRecord.default()


@dataclass(frozen=True)
class TextRegion:
    """A merged, editable unit of text."""
    id: str
    text: str
    bbox: BoundingBox
    confidence: float
    style: Optional[StyleRecord] = None

    def with_style(self, style: StyleRecord) -> "TextRegion":
        """Return a new region carrying the given style."""
        return replace(self, style=style)

    def with_id(self, region_id: str) -> "TextRegion":
        return replace(self, id=region_id)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'text': self.text,
            'bbox': self.bbox.to_dict(),
            'confidence': self.confidence,
            'style': self.style.to_dict() if self.style else None
        }


@dataclass(frozen=True)
class ImageArtifact:
    """An image owned by an editing session. Never mutated once created."""
    image: Image.Image
    format: str = "PNG"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def width(self) -> int:
        return self.image.size[0]

    @property
    def height(self) -> int:
        return self.image.size[1]


@dataclass(frozen=True)
class RemovalFailure:
    """Typed failure returned by the removal coordinator."""
    kind: RemovalFailureKind
    message: str


@dataclass(frozen=True)
class RemovalOutcome:
    """Either a cleaned image artifact or a typed failure."""
    artifact: Optional[ImageArtifact] = None
    failure: Optional[RemovalFailure] = None
    boxes_sent: int = 0

    @property
    def ok(self) -> bool:
        return self.artifact is not None and self.failure is None

    @classmethod
    def failed(cls, kind: RemovalFailureKind, message: str, boxes_sent: int = 0) -> "RemovalOutcome":
        return cls(failure=RemovalFailure(kind=kind, message=message), boxes_sent=boxes_sent)
