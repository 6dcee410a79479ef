from subclonecompat.algebra import (
    event_set_contains,
    result_set_comparator,
    result_set_key,
    somatic_event_difference,
)
from subclonecompat.models import PointMutation, SegmentalAlteration

A = [
    PointMutation("chr1", 100),
    SegmentalAlteration("chr2", 5000, 6000, "gain"),
    PointMutation("chr3", 999),
]


def test_self_difference_is_empty():
    assert somatic_event_difference(A, A) == []
    assert somatic_event_difference([], []) == []


def test_difference_uses_tolerance_and_keeps_order():
    master = [PointMutation("chr5", 1), PointMutation("chr1", 200), PointMutation("chr4", 7)]
    unwanted = [PointMutation("chr1", 100)]
    assert somatic_event_difference(master, unwanted) == [PointMutation("chr5", 1), PointMutation("chr4", 7)]


def test_difference_keeps_duplicates():
    dup = PointMutation("chr9", 50)
    master = [dup, PointMutation("chr1", 100), dup]
    assert somatic_event_difference(master, [PointMutation("chr1", 100)]) == [dup, dup]
    assert somatic_event_difference(master, [PointMutation("chr9", 60)]) == [PointMutation("chr1", 100)]


def test_difference_is_asymmetric():
    small = [PointMutation("chr1", 100)]
    assert somatic_event_difference(small, A) == []
    assert len(somatic_event_difference(A, small)) == 2


def test_contains_identities():
    assert event_set_contains(A, A)
    assert event_set_contains(A, [])
    assert event_set_contains([], [])
    assert not event_set_contains([], A)


def test_contains_matches_difference():
    container = [PointMutation("chr1", 10_000_000), SegmentalAlteration("chr2", 5000, 6000, "gain")]
    for containee in (A, A[:2], A[:1], [PointMutation("chr1", 40_000_000)]):
        expected = somatic_event_difference(containee, container) == []
        assert event_set_contains(container, containee) is expected


def test_resolution_is_passed_through():
    a = [PointMutation("chr1", 100)]
    b = [PointMutation("chr1", 150)]
    assert event_set_contains(a, b)
    assert not event_set_contains(a, b, resolution=10)
    assert somatic_event_difference(b, a, resolution=10) == b


def test_result_set_comparator_total_preorder():
    sets = [[], A[:1], A[:2], A, list(A[1:])]
    for v1 in sets:
        for v2 in sets:
            lt = result_set_comparator(v1, v2)
            gt = result_set_comparator(v2, v1)
            assert not (lt and gt)
            if len(v1) == len(v2):
                assert not lt and not gt
            else:
                assert lt or gt
    assert result_set_key(A) == 3
