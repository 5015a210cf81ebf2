"""
Dominant color ranking.

Aggregates per-name pixel counts and selects the top-N names. Ordering is by
descending count; equal counts are ordered alphabetically by name.
"""

import heapq
from typing import Dict, Iterable, List, Optional

from loguru import logger


def count_color_names(names: Iterable[str], weights: Optional[Iterable[int]] = None) -> Dict[str, int]:
    """
    Accumulate pixel counts per color name.

    Args:
        names: Color name per pixel, or per cluster when weights are given
        weights: Pixel count carried by each name (default 1 each)

    Returns:
        Mapping name -> count in first-seen order
    """
    counts: Dict[str, int] = {}
    if weights is None:
        for name in names:
            counts[name] = counts.get(name, 0) + 1
    else:
        for name, weight in zip(names, weights):
            counts[name] = counts.get(name, 0) + int(weight)
    return counts


def rank_colors(counts: Dict[str, int], n: int, excluded: Iterable[str] = ()) -> List[str]:
    """
    Return up to n names sorted by descending count.

    Excluded names are removed before ranking and zero counts are ignored.
    When fewer than n names remain, all of them are returned.

    Raises:
        ValueError: If n is negative
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")

    excluded = set(excluded)
    candidates = [
        (name, count) for name, count in counts.items()
        if name not in excluded and count > 0
    ]

    top = heapq.nsmallest(n, candidates, key=lambda item: (-item[1], item[0]))

    dropped = [name for name in excluded if counts.get(name, 0) > 0]
    if dropped:
        logger.debug(f"Excluded colors present in image: {sorted(dropped)}")

    return [name for name, _ in top]
