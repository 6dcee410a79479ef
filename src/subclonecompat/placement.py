from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .algebra import event_set_contains, result_set_key, somatic_event_difference
from .models import BOUNDARY_RESOLUTION, SomaticEvent
from .tree import Subclone, node_events_list

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementResult:
    """Outcome of placing one cumulative event set on a subtree.

    Attributes
    ----------
    placeable:
        False only when the candidate lacks an event that defines the subtree root.
    remainder:
        Candidate events not explained by the position it landed at.
    compatible_children:
        How many children of the searched node could host the candidate.
        Diagnostic only; above 1 the descent path was ambiguous.
    anchor:
        Node the candidate matched exactly, or was attached under as a new
        leaf. None when the placement failed.
    """

    placeable: bool
    remainder: List[SomaticEvent]
    compatible_children: int = 0
    anchor: Optional[Subclone] = None


def check_placement(
    pnode: Subclone,
    somatic_events: Sequence[SomaticEvent],
    resolution: int = BOUNDARY_RESOLUTION,
) -> PlacementResult:
    """Check whether a node carrying ``somatic_events`` fits at or below ``pnode``.

    ``somatic_events`` is the candidate's cumulative event set (ancestors'
    events included). The search descends into every child whose clade the
    candidate carries completely and keeps the child result with the smallest
    remainder; ties go to the earliest child.

    Neither tree is modified.
    """
    pnode_events = node_events_list(pnode)
    if not event_set_contains(somatic_events, pnode_events, resolution):
        return PlacementResult(placeable=False, remainder=list(somatic_events))

    remainder = somatic_event_difference(somatic_events, pnode_events, resolution)
    if not remainder:
        return PlacementResult(placeable=True, remainder=remainder, anchor=pnode)

    child_results: List[PlacementResult] = []
    for child in pnode.children:
        res = check_placement(child, somatic_events, resolution)
        if res.placeable:
            child_results.append(res)

    cp = len(child_results)
    if cp > 1:
        logger.debug(
            "Ambiguous descent below '%s': %d children can host the candidate", pnode.name, cp
        )

    if cp == 0:
        # new leaf under pnode carrying the unexplained events
        return PlacementResult(placeable=True, remainder=remainder, compatible_children=0, anchor=pnode)

    best = min(child_results, key=lambda r: result_set_key(r.remainder))
    return PlacementResult(
        placeable=True,
        remainder=best.remainder,
        compatible_children=cp,
        anchor=best.anchor,
    )


def tree_merge(p: Subclone, q: Subclone, resolution: int = BOUNDARY_RESOLUTION) -> bool:
    """Return True if every node of ``q`` can be placed on tree ``p``.

    Nodes of ``q`` are visited in pre-order and the first node that fails to
    place ends the check. This is a one-directional test: ``q`` refines ``p``.
    Use :func:`tree_merge_mutual` to require both directions.
    """
    p_root = p.root()
    for node in q.root().iter_preorder():
        res = check_placement(p_root, node_events_list(node), resolution)
        if not res.placeable:
            logger.debug("Node '%s' cannot be placed on tree rooted at '%s'", node.name, p_root.name)
            return False
    return True


def tree_merge_mutual(p: Subclone, q: Subclone, resolution: int = BOUNDARY_RESOLUTION) -> bool:
    return tree_merge(p, q, resolution) and tree_merge(q, p, resolution)
