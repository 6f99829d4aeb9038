"""
Editing Session - Owns the current image and its text regions.

Runs detect (OCR -> normalize -> group -> style) and removal as discrete
async tasks. Each task captures a CancellationToken bound to the image it
started on; when a newer image or a clear supersedes it, its result is
dropped instead of written back.
"""
import asyncio
from typing import List, Optional, Tuple

from loguru import logger

from core.constants import DEFAULT_BBOX_PADDING, DEFAULT_GROUPING_THRESHOLDS, GroupingThresholds
from core.exceptions import NoImageLoadedError, RemovalFailureKind
from core.models import ImageArtifact, RemovalOutcome, TextRegion
from spatial.grouping import group_words, regroup_regions
from utils.bbox_utils import normalize_words
from utils.image_utils import ImageSource, create_artifact, downscale_image

from .ocr_service import BaseOCREngine
from .removal_service import RemovalCoordinator
from .style_service import StyleAnalyzer


class CancellationToken:
    """Identifies the image a task started on."""

    def __init__(self, session: "EditingSession", generation: int, image_id: str):
        self._session = session
        self.generation = generation
        self.image_id = image_id

    @property
    def cancelled(self) -> bool:
        return self._session._generation != self.generation

    def is_current(self) -> bool:
        return not self.cancelled


class EditingSession:
    """Single-image editing session."""

    def __init__(
        self,
        ocr_engine: BaseOCREngine,
        analyzer: Optional[StyleAnalyzer] = None,
        coordinator: Optional[RemovalCoordinator] = None,
        grouping_thresholds: GroupingThresholds = DEFAULT_GROUPING_THRESHOLDS,
        padding: float = DEFAULT_BBOX_PADDING,
        auto_remove: bool = False,
        max_image_size: int = 0
    ):
        """
        Initialize the session.

        Args:
            ocr_engine: Engine used by detect()
            analyzer: Style analyzer (default thresholds if omitted)
            coordinator: Removal coordinator; removal is disabled without one
            grouping_thresholds: Thresholds for the word grouper
            padding: Box expansion applied when normalizing OCR boxes
            auto_remove: Remove text right after a successful detect()
            max_image_size: Downscale the copy handed to OCR above this size
                (0 = off); the session image itself keeps its full size
        """
        self.ocr_engine = ocr_engine
        self.analyzer = analyzer or StyleAnalyzer()
        self.coordinator = coordinator
        self.grouping_thresholds = grouping_thresholds
        self.padding = padding
        self.auto_remove = auto_remove
        self.max_image_size = max_image_size

        self._generation = 0
        self._source: Optional[ImageArtifact] = None
        self._cleaned: Optional[ImageArtifact] = None
        self._regions: Tuple[TextRegion, ...] = ()
        self._last_removal: Optional[RemovalOutcome] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def image(self) -> Optional[ImageArtifact]:
        """The loaded source image."""
        return self._source

    @property
    def cleaned_image(self) -> Optional[ImageArtifact]:
        """The last successful removal result for the current image."""
        return self._cleaned

    @property
    def current_image(self) -> Optional[ImageArtifact]:
        return self._cleaned or self._source

    @property
    def last_removal(self) -> Optional[RemovalOutcome]:
        """Outcome of the latest removal on the current image, if any."""
        return self._last_removal

    @property
    def regions(self) -> Tuple[TextRegion, ...]:
        return self._regions

    def load_image(self, source: ImageSource) -> ImageArtifact:
        """
        Replace the session image, discarding regions and superseding
        in-flight work.

        Raises:
            ImageDecodeError: If the source is unreadable; state is unchanged
        """
        artifact = create_artifact(source)
        self._reset(artifact)
        logger.info(f"Loaded image {artifact.id} ({artifact.width}x{artifact.height})")
        return artifact

    def clear(self):
        """Discard the image and its regions."""
        self._reset(None)
        logger.info("Session cleared")

    def export_regions(self) -> List[dict]:
        """Regions in the rendering surface's format."""
        return [region.to_dict() for region in self._regions]

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def detect(
        self,
        render_width: Optional[int] = None,
        render_height: Optional[int] = None
    ) -> Optional[Tuple[TextRegion, ...]]:
        """
        Detect, group and style text regions on the current image.

        Args:
            render_width: Width of the surface styles are computed for
                (defaults to the image width)
            render_height: Height of that surface (defaults to image height)

        Returns:
            The new region tuple, or None if the image changed meanwhile

        Raises:
            NoImageLoadedError: If no image is loaded
            OCRError: If the OCR engine fails; state is unchanged
        """
        token = self._token()
        artifact = self._source

        ocr_image = await asyncio.to_thread(downscale_image, artifact.image, self.max_image_size)
        words = await asyncio.to_thread(self.ocr_engine.recognize, ocr_image)
        if token.cancelled:
            logger.warning(f"Dropping OCR result for superseded image {token.image_id}")
            return None

        # OCR boxes are in the downscaled copy's pixels
        tokens = normalize_words(words, ocr_image.width, ocr_image.height, self.padding)
        regions = group_words(tokens, self.grouping_thresholds)
        logger.info(f"Detected {len(regions)} text regions from {len(words)} words")

        styled = await self.analyzer.analyze_regions_async(
            regions,
            artifact.image,
            render_width or artifact.width,
            render_height or artifact.height
        )
        if token.cancelled:
            logger.warning(f"Dropping styled regions for superseded image {token.image_id}")
            return None

        self._regions = tuple(styled)

        if self.auto_remove and self._regions and self.coordinator is not None:
            outcome = await self.remove_text()
            if not outcome.ok:
                logger.warning(f"Auto-removal failed ({outcome.failure.kind.value}): {outcome.failure.message}")

        return self._regions

    async def remove_text(self) -> RemovalOutcome:
        """
        Remove the current regions' text from the source image.

        On success the cleaned image is kept as ``cleaned_image``; on failure
        the session is left as it was. Either way the outcome is also kept
        as ``last_removal`` while the image stays current.

        Raises:
            NoImageLoadedError: If no image is loaded
        """
        token = self._token()
        if self.coordinator is None:
            return RemovalOutcome.failed(
                RemovalFailureKind.UNAVAILABLE,
                "No text removal service configured"
            )

        outcome = await self.coordinator.remove_text(self._source, self._regions)
        if token.is_current():
            self._last_removal = outcome
            if outcome.ok:
                self._cleaned = outcome.artifact
        elif outcome.ok:
            logger.warning(f"Dropping removal result for superseded image {token.image_id}")
        return outcome

    async def reanalyze(
        self,
        region_id: str,
        render_width: Optional[int] = None,
        render_height: Optional[int] = None
    ) -> Optional[TextRegion]:
        """
        Recompute the style of one region.

        Returns:
            The new region value, or None if the image or the region set
            changed meanwhile

        Raises:
            KeyError: If no region has this id
        """
        token = self._token()
        artifact = self._source
        region = next((r for r in self._regions if r.id == region_id), None)
        if region is None:
            raise KeyError(region_id)

        updated = await asyncio.to_thread(
            self.analyzer.analyze_region,
            region,
            artifact.image,
            render_width or artifact.width,
            render_height or artifact.height
        )
        if token.cancelled or not any(r is region for r in self._regions):
            logger.warning(f"Dropping restyled region {region_id}; regions changed meanwhile")
            return None

        self._regions = tuple(updated if r is region else r for r in self._regions)
        return updated

    async def regroup(
        self,
        render_width: Optional[int] = None,
        render_height: Optional[int] = None
    ) -> Optional[Tuple[TextRegion, ...]]:
        """Merge compatible existing regions and restyle the result."""
        token = self._token()
        artifact = self._source

        before = self._regions
        regions = regroup_regions(before, self.grouping_thresholds)
        styled = await self.analyzer.analyze_regions_async(
            regions,
            artifact.image,
            render_width or artifact.width,
            render_height or artifact.height
        )
        if token.cancelled or self._regions is not before:
            return None

        self._regions = tuple(styled)
        return self._regions

    async def check_removal_service(self) -> bool:
        if self.coordinator is None:
            return False
        return await self.coordinator.health_check()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reset(self, artifact: Optional[ImageArtifact]):
        self._generation += 1
        self._source = artifact
        self._cleaned = None
        self._regions = ()
        self._last_removal = None

    def _token(self) -> CancellationToken:
        if self._source is None:
            raise NoImageLoadedError("No image loaded")
        return CancellationToken(self, self._generation, self._source.id)
