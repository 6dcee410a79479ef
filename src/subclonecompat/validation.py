from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List

from .models import BOUNDARY_RESOLUTION, SomaticEvent
from .tree import Subclone

logger = logging.getLogger(__name__)


_UCSC_PREFIX = "chr"


def detect_contig_style(contigs: Iterable[str]) -> str:
    """Infer contig style: 'ucsc' if most contigs start with 'chr', else 'ensembl'."""
    names = [c for c in contigs if c]
    if not names:
        return "unknown"
    chr_like = [c for c in names if c.startswith(_UCSC_PREFIX)]
    if len(chr_like) >= max(1, int(0.5 * len(names))):
        return "ucsc"
    return "ensembl"


def remap_contig(contig: str, style: str) -> str:
    """Remap a contig name to the requested style (ucsc or ensembl)."""
    if style == "ucsc":
        if contig.startswith(_UCSC_PREFIX):
            return contig
        if contig == "MT":
            return "chrM"
        return f"{_UCSC_PREFIX}{contig}"
    if style == "ensembl":
        if contig.startswith(_UCSC_PREFIX):
            core = contig[len(_UCSC_PREFIX) :]
            if core == "M":
                return "MT"
            return core
        return contig
    return contig


def remap_event(event: SomaticEvent, style: str) -> SomaticEvent:
    chrom = remap_contig(event.chrom, style)
    if chrom == event.chrom:
        return event
    return replace(event, chrom=chrom)


def remap_tree(root: Subclone, style: str) -> None:
    """Rename the contigs of every event in the tree in place (loader use only)."""
    for node in root.iter_preorder():
        node.events = [remap_event(e, style) for e in node.events]


def tree_contigs(root: Subclone) -> List[str]:
    seen: Dict[str, None] = {}
    for node in root.iter_preorder():
        for e in node.events:
            seen.setdefault(e.chrom, None)
    return list(seen)


def check_tree(root: Subclone, resolution: int = BOUNDARY_RESOLUTION) -> List[str]:
    """Report structural problems of a subclone tree.

    The comparison code assumes well-formed trees and never calls this; the
    CLI uses it to warn about inputs that would give meaningless verdicts.
    """
    problems: List[str] = []
    names: Dict[str, int] = {}

    if root.parent is not None:
        problems.append(f"Root '{root.name}' has a parent ('{root.parent.name}').")

    for node in root.iter_preorder():
        names[node.name] = names.get(node.name, 0) + 1

        for child in node.children:
            if child.parent is not node:
                problems.append(
                    f"Child '{child.name}' of '{node.name}' does not point back to its parent."
                )

        anc = node.parent
        while anc is not None:
            for e in node.events:
                if any(e.matches(a, resolution) for a in anc.events):
                    problems.append(
                        f"Event {e.label()} of '{node.name}' repeats an event of ancestor '{anc.name}'."
                    )
            anc = anc.parent

    for name, count in sorted(names.items()):
        if count > 1:
            problems.append(f"Node name '{name}' is used {count} times.")
    return problems
