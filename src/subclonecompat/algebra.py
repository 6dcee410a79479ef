"""Set operations over event collections under tolerance-based equality.

Collections are plain lists. Membership is decided with
:meth:`SomaticEvent.matches`, so results can depend on element order when
events sit near the tolerance boundary of several others; nothing here tries
to canonicalise that.
"""

from __future__ import annotations

from typing import List, Sequence

from .models import BOUNDARY_RESOLUTION, SomaticEvent


def _has_match(event: SomaticEvent, pool: Sequence[SomaticEvent], resolution: int) -> bool:
    return any(event.matches(other, resolution) for other in pool)


def somatic_event_difference(
    master: Sequence[SomaticEvent],
    unwanted: Sequence[SomaticEvent],
    resolution: int = BOUNDARY_RESOLUTION,
) -> List[SomaticEvent]:
    """Events of ``master`` without a tolerance-equal counterpart in ``unwanted``.

    Order and duplicates of ``master`` are preserved.
    """
    return [e for e in master if not _has_match(e, unwanted, resolution)]


def event_set_contains(
    container: Sequence[SomaticEvent],
    containee: Sequence[SomaticEvent],
    resolution: int = BOUNDARY_RESOLUTION,
) -> bool:
    """True if every event of ``containee`` is matched by one in ``container``."""
    for e in containee:
        if not _has_match(e, container, resolution):
            return False
    return True


def result_set_comparator(v1: Sequence[SomaticEvent], v2: Sequence[SomaticEvent]) -> bool:
    """Order remainder sets by size: True if ``v1`` has fewer events than ``v2``."""
    return len(v1) < len(v2)


def result_set_key(v: Sequence[SomaticEvent]) -> int:
    # key form of result_set_comparator, for min()/sorted()
    return len(v)
