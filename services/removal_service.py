"""
Removal Service - Coordinates the external text-removal (inpainting) service.

Maps percentage regions to the service's pixel contract, submits the image
and boxes, tracks service availability and serializes calls per image.
"""
import asyncio
import json
from typing import Iterable, List, Optional, Sequence, Set, Tuple

import httpx
from loguru import logger

from core.constants import (
    REMOVAL_BOXES_FIELD,
    REMOVAL_ENDPOINT_PATH,
    REMOVAL_HEALTH_PATH,
    REMOVAL_IMAGE_FIELD,
)
from core.exceptions import ImageDecodeError, RemovalFailureKind, RemovalServiceError
from core.models import ImageArtifact, PixelRect, RemovalOutcome, TextRegion
from utils.bbox_utils import denormalize_bbox, is_within_bounds
from utils.image_utils import decode_image_bytes, encode_image


class TextRemovalClient:
    """
    HTTP client for the text-removal service.

    Contract:
    - ``GET /health`` answers 2xx when the service is ready
    - ``POST /remove-text`` takes a multipart body with an ``image`` file and
      a ``bboxes`` field holding a JSON array of [x0, y0, x1, y1] pixel boxes,
      and answers with the cleaned image bytes
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5050",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the client.

        Args:
            base_url: Service base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport
        )

    async def check_health(self) -> bool:
        """
        Probe the service.

        Returns:
            True if the service answered with a 2xx status
        """
        try:
            response = await self.client.get(
                REMOVAL_HEALTH_PATH,
                headers={'Accept': 'application/json'}
            )
        except httpx.HTTPError as e:
            logger.warning(f"Health check failed for {self.base_url}: {e}")
            return False

        logger.debug(f"Health check result: {response.status_code}")
        return response.is_success

    async def remove_text(
        self,
        image_bytes: bytes,
        boxes: Sequence[Tuple[int, int, int, int]],
        filename: str = "image.png",
        content_type: str = "image/png"
    ) -> bytes:
        """
        Submit an image and pixel boxes for text removal.

        Args:
            image_bytes: Encoded source image
            boxes: Ordered (x0, y0, x1, y1) pixel boxes
            filename: File name sent with the image part
            content_type: MIME type of the image part

        Returns:
            Bytes of the cleaned image

        Raises:
            RemovalServiceError: UNAVAILABLE for transport errors and 5xx,
                VALIDATION_FAILURE for 4xx, INVALID_RESPONSE for an empty body
        """
        files = {REMOVAL_IMAGE_FIELD: (filename, image_bytes, content_type)}
        data = {REMOVAL_BOXES_FIELD: json.dumps([list(box) for box in boxes])}

        try:
            response = await self.client.post(REMOVAL_ENDPOINT_PATH, files=files, data=data)
        except httpx.TimeoutException as e:
            raise RemovalServiceError(
                RemovalFailureKind.UNAVAILABLE,
                f"Removal service at {self.base_url} timed out: {e}"
            ) from e
        except httpx.HTTPError as e:
            raise RemovalServiceError(
                RemovalFailureKind.UNAVAILABLE,
                f"Could not connect to removal service at {self.base_url}: {e}"
            ) from e

        if not response.is_success:
            kind = (
                RemovalFailureKind.VALIDATION_FAILURE
                if 400 <= response.status_code < 500
                else RemovalFailureKind.UNAVAILABLE
            )
            raise RemovalServiceError(kind, self._error_message(response))

        if not response.content:
            raise RemovalServiceError(
                RemovalFailureKind.INVALID_RESPONSE,
                "Removal service returned an empty body"
            )

        return response.content

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Message from a JSON error body, else the raw text, else the status."""
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            for key in ('error', 'message', 'detail'):
                if body.get(key):
                    return str(body[key])

        text = response.text.strip()
        return text or f"HTTP error! status: {response.status_code}"

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()


class RemovalCoordinator:
    """
    Drives text removal for one editing session.

    Owns the service availability state and guarantees that at most one
    removal call is in flight per image artifact.
    """

    def __init__(
        self,
        client: TextRemovalClient,
        request_timeout: float = 60.0,
        health_timeout: float = 5.0,
        check_health_first: bool = True
    ):
        """
        Initialize the coordinator.

        Args:
            client: Removal service client
            request_timeout: Upper bound on one removal call, in seconds
            health_timeout: Upper bound on one health probe, in seconds
            check_health_first: Probe the service before each submission
        """
        self.client = client
        self.request_timeout = request_timeout
        self.health_timeout = health_timeout
        self.check_health_first = check_health_first

        self._available: Optional[bool] = None
        self._in_flight: Set[str] = set()

    async def health_check(self) -> bool:
        """
        Probe the service within ``health_timeout``.

        Exceeding the bound counts as unavailable. A False result only
        disables removal; detection and editing are unaffected.
        """
        try:
            available = await asyncio.wait_for(
                self.client.check_health(),
                timeout=self.health_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Health check timed out after {self.health_timeout}s")
            available = False

        if available != self._available:
            logger.info(f"Text removal service available: {available}")
        self._available = available
        return available

    def map_regions(
        self,
        regions: Iterable[TextRegion],
        width: int,
        height: int
    ) -> List[PixelRect]:
        """
        Convert regions to pixel boxes, dropping ones that are unusable.

        Args:
            regions: Regions in percentage space
            width: Image width in pixels
            height: Image height in pixels

        Returns:
            Valid pixel boxes in region order
        """
        boxes = []
        for region in regions:
            rect = denormalize_bbox(region.bbox, width, height)
            if rect is None or not is_within_bounds(rect, width, height):
                logger.warning(f"Invalid bbox filtered out for region {region.id}: {region.bbox.to_dict()}")
                continue
            logger.debug(
                f"Converting bbox {region.bbox.to_dict()} to pixels "
                f"{rect.to_tuple()} (image: {width}x{height})"
            )
            boxes.append(rect)
        return boxes

    async def remove_text(
        self,
        artifact: ImageArtifact,
        regions: Sequence[TextRegion]
    ) -> RemovalOutcome:
        """
        Remove the text under ``regions`` from ``artifact``.

        The source artifact is never modified; success yields a new artifact.

        Returns:
            RemovalOutcome holding the cleaned artifact or a typed failure

        Raises:
            ImageDecodeError: If the source image cannot be encoded
        """
        if artifact.id in self._in_flight:
            return RemovalOutcome.failed(
                RemovalFailureKind.BUSY,
                f"A removal is already in progress for image {artifact.id}"
            )

        self._in_flight.add(artifact.id)
        try:
            return await self._remove(artifact, regions)
        finally:
            self._in_flight.discard(artifact.id)

    async def _remove(self, artifact: ImageArtifact, regions: Sequence[TextRegion]) -> RemovalOutcome:
        width, height = artifact.width, artifact.height
        boxes = self.map_regions(regions, width, height)

        if not boxes:
            return RemovalOutcome.failed(
                RemovalFailureKind.NO_VALID_REGIONS,
                "No valid regions to remove"
            )

        if self.check_health_first and not await self.health_check():
            return RemovalOutcome.failed(
                RemovalFailureKind.UNAVAILABLE,
                f"Text removal service is not available at {self.client.base_url}"
            )

        try:
            image_bytes = await asyncio.to_thread(encode_image, artifact.image, "PNG")
        except (OSError, ValueError) as e:
            raise ImageDecodeError(f"Could not encode image {artifact.id}: {e}") from e

        logger.info(f"Sending {len(boxes)} boxes for text removal ({width}x{height})")

        try:
            content = await asyncio.wait_for(
                self.client.remove_text(image_bytes, [box.to_tuple() for box in boxes]),
                timeout=self.request_timeout
            )
        except asyncio.TimeoutError:
            self._available = False
            logger.error(f"Text removal timed out after {self.request_timeout}s")
            return RemovalOutcome.failed(
                RemovalFailureKind.UNAVAILABLE,
                f"Text removal timed out after {self.request_timeout}s",
                boxes_sent=len(boxes)
            )
        except RemovalServiceError as e:
            if e.kind == RemovalFailureKind.UNAVAILABLE:
                self._available = False
            logger.error(f"Text removal failed: {e}")
            return RemovalOutcome.failed(e.kind, e.message, boxes_sent=len(boxes))

        try:
            cleaned = await asyncio.to_thread(decode_image_bytes, content)
        except ImageDecodeError as e:
            logger.error(f"Removal service returned an undecodable image: {e}")
            return RemovalOutcome.failed(
                RemovalFailureKind.INVALID_RESPONSE,
                str(e),
                boxes_sent=len(boxes)
            )

        logger.success(f"Removed text from {len(boxes)} regions")
        return RemovalOutcome(
            artifact=ImageArtifact(image=cleaned, format=cleaned.format or "PNG"),
            boxes_sent=len(boxes)
        )

    async def close(self):
        await self.client.close()
