"""Spatial analysis package - Grouping OCR words into text regions."""

from .grouping import (
    filter_tokens,
    sort_reading_order,
    horizontal_gap,
    are_compatible,
    merge_tokens,
    cluster_tokens,
    group_words,
    regroup_regions,
)

__all__ = [
    'filter_tokens',
    'sort_reading_order',
    'horizontal_gap',
    'are_compatible',
    'merge_tokens',
    'cluster_tokens',
    'group_words',
    'regroup_regions',
]
