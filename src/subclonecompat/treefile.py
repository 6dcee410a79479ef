"""Reading and writing subclone tree sets.

A tree set is a JSON document (optionally gzip-compressed)::

    {"trees": [{"name": "run1-0",
                "root": {"name": "root", "fraction": 1.0, "events": [],
                         "children": [...]}}]}

Events are ``{"type": "point", "chrom": ..., "pos": ...}`` or
``{"type": "segment", "chrom": ..., "start": ..., "end": ..., "state": ...}``.
A node may also name a VCF file (``"vcf"``, relative to the JSON file) whose
records are appended to its events.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pysam

from .models import PointMutation, SegmentalAlteration, SomaticEvent
from .tree import Subclone
from .utils import open_textmaybe_gzip
from .validation import remap_contig

logger = logging.getLogger(__name__)

_SVTYPE_STATES = {"DEL": "loss", "DUP": "gain", "CNV": "neutral"}
_BASES = {"A", "C", "G", "T"}


class TreeFileError(ValueError):
    """Raised when a tree set or event file cannot be interpreted."""


@dataclass(frozen=True)
class NamedTree:
    name: str
    root: Subclone


def event_from_dict(d: Mapping[str, Any], *, contig_style: Optional[str] = None) -> SomaticEvent:
    if not isinstance(d, Mapping):
        raise TreeFileError(f"Event must be a JSON object, got {d!r}")
    kind = d.get("type")
    if kind not in (PointMutation.kind, SegmentalAlteration.kind):
        raise TreeFileError(
            f"Unknown event type {kind!r}; expected '{PointMutation.kind}' or '{SegmentalAlteration.kind}'."
        )
    try:
        chrom = str(d["chrom"])
        if kind == PointMutation.kind:
            pos = int(d["pos"])
        else:
            start, end = int(d["start"]), int(d["end"])
    except KeyError as e:
        raise TreeFileError(f"Event is missing field {e}: {dict(d)}") from None
    except (TypeError, ValueError):
        raise TreeFileError(f"Event positions must be integers: {dict(d)}") from None

    if contig_style:
        chrom = remap_contig(chrom, contig_style)
    if kind == PointMutation.kind:
        return PointMutation(chrom=chrom, pos=pos)
    if end < start:
        raise TreeFileError(f"Segment end precedes start: {dict(d)}")
    return SegmentalAlteration(chrom=chrom, start=start, end=end, state=str(d.get("state", "neutral")))


def event_to_dict(event: SomaticEvent) -> Dict[str, Any]:
    if isinstance(event, PointMutation):
        return {"type": event.kind, "chrom": event.chrom, "pos": event.pos}
    if isinstance(event, SegmentalAlteration):
        return {
            "type": event.kind,
            "chrom": event.chrom,
            "start": event.start,
            "end": event.end,
            "state": event.state,
        }
    raise TypeError(f"Cannot serialise event of type {type(event).__name__}")


def _extract_svtype(rec: pysam.VariantRecord) -> Optional[str]:
    if "SVTYPE" not in rec.info:
        return None
    sv = rec.info["SVTYPE"]
    if isinstance(sv, (list, tuple)):
        sv = sv[0] if sv else None
    return str(sv).upper() if sv is not None else None


def load_vcf_events(
    vcf_path: str | Path,
    *,
    contig_style: Optional[str] = None,
    require_pass: bool = True,
) -> Tuple[List[SomaticEvent], Dict[str, int]]:
    """Load somatic events from a VCF.

    Single-base SNVs become :class:`PointMutation`. Records with
    ``INFO/SVTYPE`` DEL, DUP or CNV become :class:`SegmentalAlteration`
    spanning POS..END; the state comes from ``INFO/STATE`` when the header
    defines it, otherwise from the SV type. Everything else is skipped.

    Returns
    -------
    events:
        Events in file order.
    stats:
        Simple counters about records kept/skipped.
    """
    stats: Dict[str, int] = {
        "records_total": 0,
        "events_point": 0,
        "events_segment": 0,
        "skipped_filter": 0,
        "skipped_other": 0,
    }
    events: List[SomaticEvent] = []

    with pysam.VariantFile(str(vcf_path)) as vcf:
        has_state = "STATE" in vcf.header.info
        for rec in vcf:
            stats["records_total"] += 1

            if require_pass:
                filt = list(rec.filter.keys())
                if len(filt) > 0 and not (len(filt) == 1 and filt[0] == "PASS"):
                    stats["skipped_filter"] += 1
                    continue

            chrom = str(rec.contig)
            if contig_style:
                chrom = remap_contig(chrom, contig_style)

            svtype = _extract_svtype(rec)
            if svtype in _SVTYPE_STATES:
                state = _SVTYPE_STATES[svtype]
                if has_state and rec.info.get("STATE") is not None:
                    state = str(rec.info["STATE"])
                # pysam exposes INFO/END through rec.stop
                events.append(
                    SegmentalAlteration(chrom=chrom, start=int(rec.pos), end=int(rec.stop), state=state)
                )
                stats["events_segment"] += 1
                continue

            alts = list(rec.alts or [])
            ref = rec.ref or ""
            if (
                len(ref) == 1
                and len(alts) == 1
                and ref.upper() in _BASES
                and alts[0].upper() in _BASES
            ):
                events.append(PointMutation(chrom=chrom, pos=int(rec.pos)))
                stats["events_point"] += 1
                continue

            stats["skipped_other"] += 1

    logger.info(
        "Loaded %d point and %d segmental events from %s",
        stats["events_point"],
        stats["events_segment"],
        vcf_path,
    )
    return events, stats


def tree_from_dict(
    d: Mapping[str, Any],
    *,
    base_dir: Optional[Path] = None,
    contig_style: Optional[str] = None,
) -> Subclone:
    """Build a subclone tree from its nested dict form."""
    if not isinstance(d, Mapping):
        raise TreeFileError(f"Subclone must be a JSON object, got {d!r}")
    name = d.get("name", "")

    raw_events = d.get("events", [])
    if not isinstance(raw_events, list):
        raise TreeFileError(f"'events' must be a list of objects in node {name!r}")
    events = [event_from_dict(e, contig_style=contig_style) for e in raw_events]

    vcf = d.get("vcf")
    if vcf is not None:
        vcf_path = Path(vcf)
        if base_dir is not None and not vcf_path.is_absolute():
            vcf_path = base_dir / vcf_path
        if not vcf_path.exists():
            raise TreeFileError(f"VCF referenced by node {name!r} does not exist: {vcf_path}")
        vcf_events, _ = load_vcf_events(vcf_path, contig_style=contig_style)
        events.extend(vcf_events)

    fraction = d.get("fraction")
    if fraction is not None:
        try:
            fraction = float(fraction)
        except (TypeError, ValueError):
            raise TreeFileError(f"'fraction' of node {name!r} must be a number, got {fraction!r}") from None

    children = d.get("children", [])
    if not isinstance(children, list):
        raise TreeFileError(f"'children' must be a list of objects in node {name!r}")

    node = Subclone(name=str(name), events=events, fraction=fraction)
    for child in children:
        node.add_child(tree_from_dict(child, base_dir=base_dir, contig_style=contig_style))
    return node


def tree_to_dict(node: Subclone) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "name": node.name,
        "events": [event_to_dict(e) for e in node.events],
        "children": [tree_to_dict(c) for c in node.children],
    }
    if node.fraction is not None:
        out["fraction"] = node.fraction
    return out


def load_tree_set(path: str | Path, *, contig_style: Optional[str] = None) -> List[NamedTree]:
    """Load every tree of a tree set file.

    A document holding a single ``"root"`` instead of a ``"trees"`` list is
    accepted as a set of one tree.
    """
    path = Path(path)
    try:
        with open_textmaybe_gzip(path, "rt") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as e:
        raise TreeFileError(f"{path} is not valid JSON: {e}") from None

    if isinstance(data, dict) and "root" in data and "trees" not in data:
        data = {"trees": [data]}
    if not isinstance(data, dict) or not isinstance(data.get("trees"), list):
        raise TreeFileError(f"{path} must contain a JSON object with a 'trees' list.")

    trees: List[NamedTree] = []
    for i, entry in enumerate(data["trees"]):
        if not isinstance(entry, dict) or "root" not in entry:
            raise TreeFileError(f"Tree #{i} in {path} has no 'root'.")
        name = str(entry.get("name", f"{path.stem}-{i}"))
        root = tree_from_dict(entry["root"], base_dir=path.parent, contig_style=contig_style)
        trees.append(NamedTree(name=name, root=root))

    if not trees:
        logger.warning("Tree set %s is empty.", path)
    logger.info("Loaded %d trees from %s", len(trees), path)
    return trees


def save_tree_set(path: str | Path, trees: Sequence[NamedTree]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    doc = {"trees": [{"name": t.name, "root": tree_to_dict(t.root)} for t in trees]}
    with open_textmaybe_gzip(path, "wt") as fh:
        json.dump(doc, fh, indent=2)
    return path
