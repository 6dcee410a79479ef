from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
from tqdm import tqdm

from .models import BOUNDARY_RESOLUTION, SomaticEvent
from .placement import check_placement, tree_merge, tree_merge_mutual
from .tree import Subclone, node_events_list
from .treefile import NamedTree, load_tree_set
from .utils import ensure_outdir, write_json, write_tsv
from .validation import check_tree, detect_contig_style, remap_tree, tree_contigs

logger = logging.getLogger(__name__)

CONTIG_STYLES = ("auto", "ucsc", "ensembl", "keep")


@dataclass(frozen=True)
class NodePlacement:
    """Placement of one node of the refined tree on the reference tree."""

    node: str
    placeable: bool
    remainder: List[SomaticEvent]
    compatible_children: int
    anchor: Optional[str]


@dataclass(frozen=True)
class PairResult:
    index1: int
    index2: int
    name1: str
    name2: str
    compatible: bool


def explain_placements(
    p: Subclone, q: Subclone, resolution: int = BOUNDARY_RESOLUTION
) -> List[NodePlacement]:
    """Place every node of ``q`` on ``p`` and report each outcome.

    Unlike :func:`tree_merge` this does not stop at the first failure.
    """
    p_root = p.root()
    out: List[NodePlacement] = []
    for node in q.root().iter_preorder():
        res = check_placement(p_root, node_events_list(node), resolution)
        out.append(
            NodePlacement(
                node=node.name,
                placeable=res.placeable,
                remainder=res.remainder,
                compatible_children=res.compatible_children,
                anchor=res.anchor.name if res.anchor is not None else None,
            )
        )
    return out


def compare_tree_sets(
    set1: Sequence[NamedTree],
    set2: Sequence[NamedTree],
    *,
    resolution: int = BOUNDARY_RESOLUTION,
    mutual: bool = False,
    progress: bool = True,
) -> List[PairResult]:
    """Test every (tree1, tree2) pair, where set 1 is expected to give rise to set 2."""
    if resolution < 0:
        raise ValueError(f"resolution must be >= 0, got {resolution}")

    merge = tree_merge_mutual if mutual else tree_merge
    pairs = [(i, j) for i in range(len(set1)) for j in range(len(set2))]

    it: Iterable = pairs
    if progress:
        it = tqdm(pairs, unit="pair", desc="Comparing trees")

    results: List[PairResult] = []
    for i, j in it:
        t1, t2 = set1[i], set2[j]
        ok = merge(t1.root, t2.root, resolution)
        results.append(PairResult(index1=i, index2=j, name1=t1.name, name2=t2.name, compatible=ok))
        logger.debug("%s vs %s: %s", t1.name, t2.name, "compatible" if ok else "incompatible")
    return results


def compatibility_matrix(results: Iterable[PairResult], n1: int, n2: int) -> np.ndarray:
    """Return an ``n1 x n2`` 0/1 matrix of pair verdicts."""
    mat = np.zeros((n1, n2), dtype=np.int64)
    for r in results:
        if r.compatible:
            mat[r.index1, r.index2] = 1
    return mat


def harmonise_contigs(set1: List[NamedTree], set2: List[NamedTree], requested: str) -> str:
    """Rewrite contig names of both sets in place to one naming style.

    ``requested`` is one of :data:`CONTIG_STYLES`. With ``"auto"`` the style
    of set 1 wins (set 2 when set 1 has no recognisable contigs). Returns the
    style applied, ``"keep"`` when nothing was changed.
    """
    if requested not in CONTIG_STYLES:
        raise ValueError(f"contig_style must be one of {CONTIG_STYLES}, got {requested!r}")
    if requested == "keep":
        return "keep"

    target = requested
    if requested == "auto":
        contigs1 = [c for t in set1 for c in tree_contigs(t.root)]
        contigs2 = [c for t in set2 for c in tree_contigs(t.root)]
        target = detect_contig_style(contigs1)
        if target == "unknown":
            target = detect_contig_style(contigs2)
        if target == "unknown":
            return "keep"
        style2 = detect_contig_style(contigs2)
        if style2 not in ("unknown", target):
            logger.warning(
                "Contig style mismatch detected (set1=%s, set2=%s). Remapping events to %s style.",
                target,
                style2,
                target,
            )

    for t in list(set1) + list(set2):
        remap_tree(t.root, target)
    return target


def run_comparison(
    *,
    set1_path: str | Path,
    set2_path: str | Path,
    outdir: str | Path,
    resolution: int = BOUNDARY_RESOLUTION,
    mutual: bool = False,
    contig_style: str = "auto",
    progress: bool = True,
) -> Dict[str, object]:
    """Main workhorse: load both tree sets, compare all pairs, write outputs, return summary."""
    t0 = time.time()
    outdir_path = ensure_outdir(outdir)

    if contig_style not in CONTIG_STYLES:
        raise ValueError(f"contig_style must be one of {CONTIG_STYLES}, got {contig_style!r}")

    set1 = load_tree_set(set1_path)
    set2 = load_tree_set(set2_path)
    style_used = harmonise_contigs(set1, set2, contig_style)

    warnings: List[str] = []
    for label, trees in (("set1", set1), ("set2", set2)):
        for t in trees:
            for problem in check_tree(t.root, resolution):
                msg = f"{label}/{t.name}: {problem}"
                logger.warning("%s", msg)
                warnings.append(msg)

    results = compare_tree_sets(
        set1, set2, resolution=resolution, mutual=mutual, progress=progress
    )
    compatible = [r for r in results if r.compatible]

    header = ["tree1", "tree2", "index1", "index2", "compatible"]
    pairs_tsv = outdir_path / "pairs.tsv"
    write_tsv(
        pairs_tsv,
        header,
        ([r.name1, r.name2, r.index1, r.index2, int(r.compatible)] for r in results),
    )
    compatible_tsv = outdir_path / "compatible_pairs.tsv"
    write_tsv(
        compatible_tsv,
        header,
        ([r.name1, r.name2, r.index1, r.index2, 1] for r in compatible),
    )

    # remainder sizes over all node placements of compatible pairs
    remainder_hist: Dict[int, int] = {}
    ambiguous_nodes = 0
    for r in compatible:
        for pl in explain_placements(set1[r.index1].root, set2[r.index2].root, resolution):
            k = len(pl.remainder)
            remainder_hist[k] = remainder_hist.get(k, 0) + 1
            if pl.compatible_children > 1:
                ambiguous_nodes += 1

    matrix = compatibility_matrix(results, len(set1), len(set2))

    summary: Dict[str, object] = {
        "set1_path": str(set1_path),
        "set2_path": str(set2_path),
        "resolution": int(resolution),
        "mutual": bool(mutual),
        "contig_style": style_used,
        "counts": {
            "trees_set1": len(set1),
            "trees_set2": len(set2),
            "pairs_total": len(results),
            "pairs_compatible": len(compatible),
            "ambiguous_placements": ambiguous_nodes,
        },
        "compatible_pairs": [
            {"tree1": r.name1, "tree2": r.name2, "index1": r.index1, "index2": r.index2}
            for r in compatible
        ],
        "matrix": matrix.tolist(),
        "tree_names": {
            "set1": [t.name for t in set1],
            "set2": [t.name for t in set2],
        },
        "remainder_size_hist": {str(k): v for k, v in sorted(remainder_hist.items())},
        "warnings": warnings,
        "pairs_tsv": str(pairs_tsv),
        "compatible_pairs_tsv": str(compatible_tsv),
        "runtime_seconds": float(time.time() - t0),
    }

    write_json(outdir_path / "summary.json", summary)
    logger.info("%d of %d tree pairs are compatible", len(compatible), len(results))
    return summary
