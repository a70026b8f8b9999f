"""Self-intersection check for a walked path."""
from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from territory_engine.core.geometry import segments_intersect
from territory_engine.core.models import GeoPoint

log = logging.getLogger(__name__)

# Segments this close to both ends are not compared against each other: the
# loop-closing segment naturally touches the first one.
_SKIP_HEAD_SEGMENTS = 2
_SKIP_TAIL_SEGMENTS = 2


def find_self_intersection(
    path: Sequence[GeoPoint],
    logger: Optional[logging.Logger] = None,
) -> Optional[Tuple[int, int]]:
    """Return ``(i, j)`` of the first crossing segment pair, or None.

    Segment ``k`` joins point ``k`` to ``k + 1``.
    """
    logger = logger or log
    snapshot = tuple(path)
    if len(snapshot) < 4:
        return None

    segment_count = len(snapshot) - 1
    for i in range(segment_count):
        p1 = snapshot[i]
        p2 = snapshot[i + 1]

        for j in range(i + 2, segment_count):
            is_head = i < _SKIP_HEAD_SEGMENTS
            is_tail = j >= segment_count - _SKIP_TAIL_SEGMENTS
            if is_head and is_tail:
                continue

            if segments_intersect(p1, p2, snapshot[j], snapshot[j + 1]):
                logger.info("Self-intersection: segment %d-%d crosses segment %d-%d", i, i + 1, j, j + 1)
                return i, j

    logger.debug("Self-intersection: none in %d segments", segment_count)
    return None


def has_self_intersection(path: Sequence[GeoPoint], logger: Optional[logging.Logger] = None) -> bool:
    return find_self_intersection(path, logger=logger) is not None
