"""
Grouping Module

Merges OCR word tokens that form one visual phrase into a single editable
text region:
- Filtering: drop empty, low-confidence or degenerate tokens
- Reading order: top-to-bottom with a same-line tolerance, then left-to-right
- Clustering: greedy seed-based grouping with a symmetric compatibility test
- Merging: union box, space-joined text, length-weighted confidence

Known limitation: the reading-order sort does not model columns. Two
side-by-side columns in the same vertical band can be merged or emitted in
clustering order rather than true reading order.
"""
from functools import cmp_to_key
from typing import Iterable, List, Optional, Sequence

from loguru import logger

from core.constants import DEFAULT_GROUPING_THRESHOLDS, GroupingThresholds
from core.models import BoundingBox, TextRegion, WordToken


def filter_tokens(
    tokens: Iterable[WordToken],
    thresholds: GroupingThresholds = DEFAULT_GROUPING_THRESHOLDS
) -> List[WordToken]:
    """
    Drop tokens that cannot contribute to a region.

    Args:
        tokens: Word tokens in percentage space
        thresholds: Grouping thresholds

    Returns:
        Tokens with non-blank text, enough confidence and a positive box
    """
    kept = []

    for token in tokens:
        if token is None or not isinstance(token.text, str) or not token.text.strip():
            continue
        if token.confidence is None or token.confidence < thresholds.min_confidence:
            continue
        bbox = token.bbox
        if bbox is None or bbox.width <= 0 or bbox.height <= 0:
            continue
        kept.append(token)

    return kept


def sort_reading_order(
    tokens: Sequence[WordToken],
    tolerance: float = DEFAULT_GROUPING_THRESHOLDS.line_sort_tolerance
) -> List[WordToken]:
    """
    Sort tokens top-to-bottom, treating tops within ``tolerance`` as one line.

    Args:
        tokens: Word tokens
        tolerance: Same-line tolerance in percentage points

    Returns:
        New list in reading order
    """
    def compare(a: WordToken, b: WordToken) -> int:
        dy = a.bbox.y0 - b.bbox.y0
        if abs(dy) < tolerance:
            dx = a.bbox.x0 - b.bbox.x0
            return (dx > 0) - (dx < 0)
        return (dy > 0) - (dy < 0)

    return sorted(tokens, key=cmp_to_key(compare))


def horizontal_gap(a: BoundingBox, b: BoundingBox) -> float:
    """Distance between the x-extents of two boxes (0 when they overlap)."""
    return max(0.0, b.x0 - a.x1, a.x0 - b.x1)


def are_compatible(
    a: WordToken,
    b: WordToken,
    thresholds: GroupingThresholds = DEFAULT_GROUPING_THRESHOLDS
) -> bool:
    """
    Check whether two tokens belong to the same visual phrase.

    All of the following must hold:
    - same line: tops closer than a fraction of the average height
    - similar height
    - horizontally close relative to the wider token
    - confidences not too far apart

    The test is symmetric in ``a`` and ``b``.
    """
    h_a = a.bbox.height
    h_b = b.bbox.height
    avg_h = (h_a + h_b) / 2

    same_line = abs(a.bbox.y0 - b.bbox.y0) < max(
        thresholds.same_line_ratio * avg_h, thresholds.same_line_floor
    )
    if not same_line:
        return False

    if abs(h_a - h_b) >= thresholds.height_ratio * avg_h:
        return False

    max_width = max(a.bbox.width, b.bbox.width)
    if horizontal_gap(a.bbox, b.bbox) >= thresholds.proximity_ratio * max_width:
        return False

    return abs(a.confidence - b.confidence) < thresholds.max_confidence_gap


def merge_tokens(group: Sequence[WordToken], region_id: str = "") -> Optional[TextRegion]:
    """
    Merge a group of tokens into one region.

    Args:
        group: One or more tokens
        region_id: Id for the merged region

    Returns:
        TextRegion, or None if the merged text is empty
    """
    if not group:
        return None

    ordered = sorted(group, key=lambda t: t.bbox.x0)
    texts = [t.text.strip() for t in ordered]
    merged_text = ' '.join(t for t in texts if t)
    if not merged_text:
        return None

    bbox = ordered[0].bbox
    for token in ordered[1:]:
        bbox = bbox.union(token.bbox)

    # Confidence weighted by character count
    weights = [len(t) for t in texts]
    total = sum(weights)
    if len(ordered) == 1:
        confidence = ordered[0].confidence
    elif total > 0:
        confidence = sum(t.confidence * w for t, w in zip(ordered, weights)) / total
    else:
        confidence = sum(t.confidence for t in ordered) / len(ordered)

    return TextRegion(
        id=region_id,
        text=merged_text,
        bbox=bbox,
        confidence=confidence
    )


def cluster_tokens(
    tokens: Sequence[WordToken],
    thresholds: GroupingThresholds = DEFAULT_GROUPING_THRESHOLDS
) -> List[List[WordToken]]:
    """
    Greedily cluster tokens that are compatible with a group's seed.

    Tokens are visited in order; each unconsumed token seeds a group and
    pulls in every other unconsumed token compatible with it.

    Returns:
        List of token groups in clustering order
    """
    consumed = [False] * len(tokens)
    groups = []

    for i, seed in enumerate(tokens):
        if consumed[i]:
            continue
        consumed[i] = True
        group = [seed]

        for j, other in enumerate(tokens):
            if consumed[j]:
                continue
            if are_compatible(seed, other, thresholds):
                group.append(other)
                consumed[j] = True

        groups.append(group)

    return groups


def group_words(
    tokens: Iterable[WordToken],
    thresholds: GroupingThresholds = DEFAULT_GROUPING_THRESHOLDS
) -> List[TextRegion]:
    """
    Group OCR word tokens into merged text regions.

    Args:
        tokens: Word tokens in percentage space
        thresholds: Grouping thresholds

    Returns:
        Regions with sequential ids ``region-<n>``, in clustering order.
        Malformed input is filtered, never raised.
    """
    tokens = list(tokens)
    filtered = filter_tokens(tokens, thresholds)
    if not filtered:
        return []

    ordered = sort_reading_order(filtered, thresholds.line_sort_tolerance)
    groups = cluster_tokens(ordered, thresholds)

    regions = []
    for group in groups:
        region = merge_tokens(group)
        if region is None:
            continue
        if (region.bbox.width < thresholds.min_region_size
                or region.bbox.height < thresholds.min_region_size):
            continue
        regions.append(region.with_id(f"region-{len(regions)}"))

    logger.debug(
        f"Grouped {len(filtered)} tokens into {len(regions)} regions "
        f"({len(tokens) - len(filtered)} tokens filtered)"
    )
    return regions


def regroup_regions(
    regions: Iterable[TextRegion],
    thresholds: GroupingThresholds = DEFAULT_GROUPING_THRESHOLDS
) -> List[TextRegion]:
    """
    Run existing regions back through the grouper as if they were tokens.

    Styles are not carried over; merged regions need fresh analysis.
    """
    tokens = [
        WordToken(id=r.id, text=r.text, bbox=r.bbox, confidence=r.confidence)
        for r in regions
    ]
    return group_words(tokens, thresholds)
