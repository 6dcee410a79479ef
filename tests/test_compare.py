import json
from pathlib import Path

import numpy as np
import pytest

from subclonecompat.compare import (
    PairResult,
    compare_tree_sets,
    compatibility_matrix,
    explain_placements,
    harmonise_contigs,
    run_comparison,
)
from subclonecompat.models import PointMutation
from subclonecompat.toy_data import make_toy_data
from subclonecompat.tree import Subclone
from subclonecompat.treefile import NamedTree, save_tree_set


def _pair():
    p = Subclone("p-root", [PointMutation("chr17", 7)])
    p.add_child(Subclone("p-A", [PointMutation("chr1", 100)]))
    p.add_child(Subclone("p-C", [PointMutation("chr5", 100)]))
    q = Subclone("q-root", [PointMutation("chr17", 7)])
    q.add_child(Subclone("q-A", [PointMutation("chr1", 100), PointMutation("chr3", 1)]))
    return p, q


def test_explain_placements_reports_every_node():
    p, q = _pair()
    out = explain_placements(p, q)
    assert [pl.node for pl in out] == ["q-root", "q-A"]
    assert out[0].placeable and out[0].anchor == "p-root" and out[0].remainder == []
    assert out[1].anchor == "p-A"
    assert out[1].remainder == [PointMutation("chr3", 1)]


def test_explain_placements_does_not_stop_at_failure():
    p, _ = _pair()
    q = Subclone("q-root", [PointMutation("chr9", 1)])
    q.add_child(Subclone("q-A"))
    out = explain_placements(p, q)
    assert len(out) == 2
    assert not any(pl.placeable for pl in out)
    assert all(pl.anchor is None for pl in out)


def test_compare_tree_sets_and_matrix():
    p, q = _pair()
    other = Subclone("o-root", [PointMutation("chr4", 1)])
    # refines p, but p cannot be placed back on it
    q2 = Subclone("q2-root", [PointMutation("chr17", 7), PointMutation("chr9", 1)])
    set1 = [NamedTree("p", p), NamedTree("o", other)]
    set2 = [NamedTree("q", q), NamedTree("q2", q2)]

    results = compare_tree_sets(set1, set2, progress=False)
    assert [(r.name1, r.name2, r.compatible) for r in results] == [
        ("p", "q", True),
        ("p", "q2", True),
        ("o", "q", False),
        ("o", "q2", False),
    ]

    mat = compatibility_matrix(results, 2, 2)
    assert mat.shape == (2, 2)
    assert np.array_equal(mat, np.array([[1, 1], [0, 0]]))

    mutual = compare_tree_sets(set1, set2, mutual=True, progress=False)
    assert [r.compatible for r in mutual] == [True, False, False, False]


def test_compare_tree_sets_rejects_negative_resolution():
    with pytest.raises(ValueError):
        compare_tree_sets([], [], resolution=-1, progress=False)


def test_compatibility_matrix_ignores_incompatible():
    results = [PairResult(0, 0, "a", "b", False), PairResult(1, 2, "c", "d", True)]
    mat = compatibility_matrix(results, 2, 3)
    assert mat.sum() == 1 and mat[1, 2] == 1


def test_run_comparison_on_toy_data(tmp_path: Path):
    toy = make_toy_data(outdir=tmp_path / "toy")
    summary = run_comparison(
        set1_path=toy["set1"],
        set2_path=toy["set2"],
        outdir=tmp_path / "out",
        progress=False,
    )
    assert summary["counts"]["pairs_total"] == 4
    assert summary["compatible_pairs"] == [
        {"tree1": "primary-0", "tree2": "relapse-0", "index1": 0, "index2": 0}
    ]
    assert summary["matrix"] == [[1, 0], [0, 0]]
    assert summary["contig_style"] == "ucsc"
    assert summary["warnings"] == []
    # R-B keeps its new chr3 SNV unexplained
    assert summary["remainder_size_hist"] == {"0": 2, "1": 1}

    on_disk = json.loads((tmp_path / "out" / "summary.json").read_text(encoding="utf-8"))
    assert on_disk["counts"]["pairs_compatible"] == 1
    lines = (tmp_path / "out" / "pairs.tsv").read_text(encoding="utf-8").splitlines()
    assert lines[0].split("\t") == ["tree1", "tree2", "index1", "index2", "compatible"]
    assert len(lines) == 5


def test_run_comparison_harmonises_contigs(tmp_path: Path):
    p = Subclone("root", [PointMutation("chr17", 7)])
    q = Subclone("root", [PointMutation("17", 7)])
    s1 = save_tree_set(tmp_path / "s1.json", [NamedTree("p", p)])
    s2 = save_tree_set(tmp_path / "s2.json", [NamedTree("q", q)])

    kept = run_comparison(
        set1_path=s1, set2_path=s2, outdir=tmp_path / "keep", contig_style="keep", progress=False
    )
    assert kept["counts"]["pairs_compatible"] == 0

    auto = run_comparison(set1_path=s1, set2_path=s2, outdir=tmp_path / "auto", progress=False)
    assert auto["counts"]["pairs_compatible"] == 1
    assert auto["contig_style"] == "ucsc"


def test_run_comparison_collects_tree_warnings(tmp_path: Path):
    root = Subclone("root", [PointMutation("chr1", 100)])
    root.add_child(Subclone("A", [PointMutation("chr1", 150)]))
    s = save_tree_set(tmp_path / "s.json", [NamedTree("dup", root)])
    summary = run_comparison(set1_path=s, set2_path=s, outdir=tmp_path / "out", progress=False)
    assert len(summary["warnings"]) == 2
    assert summary["warnings"][0].startswith("set1/dup:")


def test_harmonise_contigs_follows_set1_style():
    set1 = [NamedTree("a", Subclone("r", [PointMutation("chr17", 7)]))]
    set2 = [NamedTree("b", Subclone("r", [PointMutation("17", 7)]))]
    assert harmonise_contigs(set1, set2, "auto") == "ucsc"
    assert set2[0].root.events == [PointMutation("chr17", 7)]

    assert harmonise_contigs(set1, set2, "ensembl") == "ensembl"
    assert set1[0].root.events == [PointMutation("17", 7)]

    with pytest.raises(ValueError):
        harmonise_contigs(set1, set2, "hg38")
