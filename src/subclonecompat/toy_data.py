from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Tuple

import pysam

from .models import PointMutation, SegmentalAlteration, SomaticEvent
from .tree import Subclone
from .treefile import NamedTree, save_tree_set
from .utils import ensure_outdir, write_json

_CONTIGS = {
    "chr1": 248_956_422,
    "chr2": 242_193_529,
    "chr3": 198_295_559,
    "chr4": 190_214_555,
    "chr5": 181_538_259,
    "chr10": 133_797_422,
    "chr17": 83_257_441,
}


def _truncal() -> List[SomaticEvent]:
    return [
        PointMutation("chr17", 7_674_220),
        SegmentalAlteration("chr10", 1_000_000, 133_000_000, "loss"),
    ]


def _primary_tree() -> Subclone:
    root = Subclone("P-root", _truncal(), fraction=1.0)
    a = root.add_child(Subclone("P-A", [PointMutation("chr1", 1_000_000)], fraction=0.6))
    a.add_child(
        Subclone("P-B", [SegmentalAlteration("chr2", 5_000_000, 60_000_000, "gain")], fraction=0.3)
    )
    root.add_child(Subclone("P-C", [PointMutation("chr5", 1_200)], fraction=0.2))
    return root


def _alternative_primary_tree() -> Subclone:
    root = Subclone("Q-root", [PointMutation("chr4", 55_000_000)], fraction=1.0)
    root.add_child(Subclone("Q-A", [PointMutation("chr1", 1_000_000)], fraction=0.5))
    return root


def _write_vcf(path: Path, records: List[Tuple[str, int, int, Tuple[str, str], Dict[str, str]]]) -> Path:
    header = pysam.VariantHeader()
    header.add_meta("fileformat", "VCFv4.2")
    header.add_sample("TUMOR")
    for contig, length in _CONTIGS.items():
        header.contigs.add(contig, length=length)
    header.info.add("SVTYPE", number=1, type="String", description="Type of structural variant")
    header.info.add("END", number=1, type="Integer", description="End position of the variant")

    with pysam.VariantFile(str(path), "w", header=header) as vcf:
        for contig, start0, stop, alleles, info in records:
            rec = vcf.new_record(
                contig=contig,
                start=start0,
                stop=stop,
                alleles=alleles,
                qual=60,
                filter="PASS",
                info=info,
            )
            vcf.write(rec)
    return path


def make_toy_data(*, outdir: str | Path) -> Dict[str, str]:
    """Create two tiny tree sets suitable for quick demos/tests.

    ``set1.json`` holds two primary-sample trees; ``set2.json`` holds two
    relapse trees. One relapse node takes its events from ``relapse_B.vcf``.
    Expected verdicts: relapse-0 refines primary-0; nothing else is compatible.

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)

    set1 = [
        NamedTree("primary-0", _primary_tree()),
        NamedTree("primary-1", _alternative_primary_tree()),
    ]
    set1_path = save_tree_set(outdir_p / "set1.json", set1)

    # relapse_B: the chr2 gain with shifted breakpoints plus a new SNV
    vcf_path = _write_vcf(
        outdir_p / "relapse_B.vcf",
        [
            ("chr2", 5_100_000, 60_200_000, ("N", "<DUP>"), {"SVTYPE": "DUP"}),
            ("chr3", 499, 500, ("C", "T"), {}),
        ],
    )

    r0 = Subclone("R-root", _truncal(), fraction=1.0)
    ra = r0.add_child(Subclone("R-A", [PointMutation("chr1", 1_000_500)], fraction=0.8))
    ra.add_child(Subclone("R-B", fraction=0.7))

    r1 = Subclone("S-root", [PointMutation("chr17", 7_674_220)], fraction=1.0)
    r1.add_child(Subclone("S-A", [PointMutation("chr1", 1_000_000)], fraction=0.4))

    set2 = [NamedTree("relapse-0", r0), NamedTree("relapse-1", r1)]
    set2_path = save_tree_set(outdir_p / "set2.json", set2)

    # point R-B at the VCF instead of inlining its events
    doc = json.loads(set2_path.read_text(encoding="utf-8"))
    doc["trees"][0]["root"]["children"][0]["children"][0]["vcf"] = vcf_path.name
    set2_path.write_text(json.dumps(doc, indent=2), encoding="utf-8")

    summary = {
        "set1": str(set1_path),
        "set2": str(set2_path),
        "vcf": str(vcf_path),
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
