"""Region association between consecutive frames by 2D overlap."""

from __future__ import annotations

import logging

from .region import Region

logger = logging.getLogger(__name__)


def match_regions(
    prev_regions: list[Region],
    curr_regions: list[Region],
    iou_threshold: float = 0.7,
) -> dict[int, int]:
    """Associate previous-frame regions with current-frame regions.

    Each previous region is paired with the current region of highest
    intersection-over-union. On a tie the first current region found wins.
    The pair is kept only if that IoU exceeds `iou_threshold`.

    Every previous region is matched independently, so two previous
    regions may map to the same current region.

    Args:
        prev_regions: Regions of the previous frame
        curr_regions: Regions of the current frame
        iou_threshold: Minimum IoU (exclusive) for a match

    Returns:
        Mapping from previous region ID to current region ID
    """
    matches: dict[int, int] = {}

    for prev in prev_regions:
        best_iou = -1.0
        best_id: int | None = None

        for curr in curr_regions:
            iou = prev.rect.iou(curr.rect)
            if iou > best_iou:
                best_iou = iou
                best_id = curr.region_id

        if best_id is not None and best_iou > iou_threshold:
            matches[prev.region_id] = best_id

    logger.debug(
        "Associated %d of %d previous regions (%d current)",
        len(matches),
        len(prev_regions),
        len(curr_regions),
    )
    return matches
