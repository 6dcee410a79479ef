from subclonecompat import placement
from subclonecompat.models import PointMutation, SegmentalAlteration
from subclonecompat.placement import check_placement, tree_merge, tree_merge_mutual
from subclonecompat.tree import Subclone, node_events_list

SNP1 = PointMutation("chr1", 100)
SEG2 = SegmentalAlteration("chr2", 5000, 6000, "gain")


def _descent_tree():
    root = Subclone("root")
    a = root.add_child(Subclone("A", [SNP1]))
    b = a.add_child(Subclone("B", [SEG2]))
    return root, a, b


def _truncal_tree():
    root = Subclone("root", [PointMutation("chr17", 7_674_220)])
    a = root.add_child(Subclone("A", [PointMutation("chr1", 1_000_000)]))
    a.add_child(Subclone("B", [SegmentalAlteration("chr2", 5_000_000, 60_000_000, "gain")]))
    root.add_child(Subclone("C", [PointMutation("chr5", 1_200)]))
    return root


def test_descends_to_exact_match_not_deeper():
    root, a, b = _descent_tree()
    res = check_placement(root, [SNP1])
    assert res.placeable
    assert res.remainder == []
    assert res.anchor is a
    assert res.compatible_children == 1


def test_unrelated_events_attach_under_empty_root():
    root, a, b = _descent_tree()
    snp3 = PointMutation("chr3", 999)
    res = check_placement(root, [snp3])
    assert res.placeable
    assert res.remainder == [snp3]
    assert res.anchor is root
    assert res.compatible_children == 0


def test_fails_when_clade_events_missing():
    root = _truncal_tree()
    candidate = [PointMutation("chr1", 1_000_000)]
    res = check_placement(root, candidate)
    assert not res.placeable
    assert res.remainder == candidate
    assert res.anchor is None


def test_every_node_places_at_itself():
    root = _truncal_tree()
    for node in root.iter_preorder():
        res = check_placement(root, node_events_list(node))
        assert res.placeable
        assert res.remainder == []
        assert res.anchor is node


def test_remainder_below_leaf():
    root = _truncal_tree()
    extra = PointMutation("chr3", 500)
    candidate = node_events_list(root.children[0].children[0]) + [extra]
    res = check_placement(root, candidate)
    assert res.placeable
    assert res.remainder == [extra]
    assert res.anchor.name == "B"


def test_smallest_remainder_wins():
    root = Subclone("root")
    root.add_child(Subclone("X", [PointMutation("chr1", 100)]))
    y = root.add_child(Subclone("Y", [PointMutation("chr2", 100), PointMutation("chr5", 1)]))
    candidate = [PointMutation("chr1", 100), PointMutation("chr2", 100), PointMutation("chr5", 1)]
    res = check_placement(root, candidate)
    assert res.anchor is y
    assert res.remainder == [PointMutation("chr1", 100)]
    assert res.compatible_children == 2


def test_ties_keep_first_child():
    root = Subclone("root")
    x = root.add_child(Subclone("X", [PointMutation("chr1", 100)]))
    root.add_child(Subclone("Y", [PointMutation("chr2", 100)]))
    candidate = [PointMutation("chr1", 100), PointMutation("chr2", 100), PointMutation("chr5", 1)]
    res = check_placement(root, candidate)
    assert res.anchor is x
    assert res.remainder == [PointMutation("chr2", 100), PointMutation("chr5", 1)]
    assert res.compatible_children == 2


def test_placement_uses_tolerance():
    root, a, b = _descent_tree()
    res = check_placement(root, [PointMutation("chr1", 100 + 20_000_000)])
    assert res.anchor is a and res.remainder == []
    res = check_placement(root, [PointMutation("chr1", 100 + 20_000_001)])
    assert res.anchor is root and len(res.remainder) == 1


def test_placement_does_not_modify_tree():
    root = _truncal_tree()
    before = [(n.name, list(n.events), list(n.children)) for n in root.iter_preorder()]
    check_placement(root, [PointMutation("chr17", 7_674_220), PointMutation("chr9", 1)])
    after = [(n.name, list(n.events), list(n.children)) for n in root.iter_preorder()]
    assert before == after


def test_tree_merge_with_itself():
    root = _truncal_tree()
    assert tree_merge(root, root)
    root2, _, _ = _descent_tree()
    assert tree_merge(root2, root2)


def test_tree_merge_accepts_subtree_argument():
    root = _truncal_tree()
    # any node stands for its whole tree
    assert tree_merge(root.children[0], root.children[1])


def test_tree_merge_refinement():
    p = _truncal_tree()
    q = Subclone("q-root", [PointMutation("chr17", 7_674_300)])
    qa = q.add_child(Subclone("q-A", [PointMutation("chr1", 1_000_500)]))
    qa.add_child(
        Subclone(
            "q-B",
            [SegmentalAlteration("chr2", 5_100_000, 60_200_000, "gain"), PointMutation("chr3", 500)],
        )
    )
    assert tree_merge(p, q)


def test_tree_merge_is_one_directional():
    p = Subclone("p", [PointMutation("chr17", 7_674_220)])
    q = Subclone("q", [PointMutation("chr17", 7_674_220), PointMutation("chr1", 100)])
    assert tree_merge(p, q)
    assert not tree_merge(q, p)
    assert not tree_merge_mutual(p, q)
    assert tree_merge_mutual(p, p)


def test_tree_merge_rejects_missing_truncal_event():
    p = _truncal_tree()
    q = Subclone("q", [PointMutation("chr1", 1_000_000)])
    q.add_child(Subclone("q-A", [PointMutation("chr17", 7_674_220)]))
    assert not tree_merge(p, q)


def test_tree_merge_stops_at_first_failing_node(monkeypatch):
    p = _truncal_tree()
    q = Subclone("q", [PointMutation("chr9", 42)])
    for i in range(3):
        q.add_child(Subclone(f"q-{i}", [PointMutation("chr1", 1_000_000 + i)]))

    calls = []
    real = placement.check_placement

    def counting(pnode, events, resolution):
        calls.append([e.label() for e in events])
        return real(pnode, events, resolution)

    monkeypatch.setattr(placement, "check_placement", counting)
    assert not tree_merge(p, q)
    assert calls == [["chr9:42"]]
