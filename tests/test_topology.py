import numpy as np
import pytest
from rope_relax import Topology, Element


def test_element_ids_are_monotonic():
    topo = Topology()
    ids = [topo.add_element(0, 1), topo.add_element(1, 2), topo.add_element(5, 9)]

    assert ids == [0, 1, 2]
    assert topo.element(2).node_b == 9


def test_add_element_defers_validation():
    """Out-of-range indices are accepted at edit time."""
    topo = Topology()
    eid = topo.add_element(3, 4, rope_length=2.0)

    assert topo.element(eid).rope_length == 2.0
    assert topo.node_count == 0


def test_add_node_keeps_fixed_flags_aligned():
    topo = Topology()
    topo.set_fixed(1, True)           # flag set ahead of its node
    topo.add_node((0, 0, 0))
    topo.add_node((1, 0, 0))
    topo.add_node((2, 0, 0), fixed=True)

    assert topo.fixed == [False, False, True]
    assert topo.is_fixed(2)
    assert not topo.is_fixed(10)


def test_add_node_rejects_bad_vectors():
    with pytest.raises(ValueError):
        Topology().add_node((1.0, 2.0))


def test_group_length_propagates_to_members_only():
    topo = Topology()
    a = topo.add_element(0, 1, rope_length=1.0)
    b = topo.add_element(1, 2, rope_length=1.0)
    c = topo.add_element(2, 3, rope_length=4.0)
    g1 = topo.add_group("g1", [a, b])
    g2 = topo.add_group("g2", [c])

    topo.set_group_length(g1, 3.0)

    assert g1.group_length == 3.0
    assert topo.element(a).rope_length == 3.0
    assert topo.element(b).rope_length == 3.0
    assert topo.element(c).rope_length == 4.0
    assert g2.group_length == 4.0


def test_set_group_length_by_name():
    topo = Topology()
    e = topo.add_element(0, 1)
    topo.add_group("ring", [e])

    topo.set_group_length("ring", 0.75)

    assert topo.element(e).rope_length == 0.75


def test_add_group_with_explicit_length_propagates():
    topo = Topology()
    e = topo.add_element(0, 1, rope_length=9.0)
    g = topo.add_group("g", [e], group_length=2.0)

    assert g.group_length == 2.0
    assert topo.element(e).rope_length == 2.0


def test_duplicate_group_name_rejected():
    topo = Topology()
    topo.add_group("g")
    with pytest.raises(ValueError):
        topo.add_group("g")


def test_revision_tracks_edits():
    topo = Topology()
    r0 = topo.revision
    topo.add_node((0, 0, 0))
    topo.add_node((1, 0, 0))
    e = topo.add_element(0, 1)
    g = topo.add_group("g", [e])
    r1 = topo.revision
    topo.set_group_length(g, 2.0)

    assert r1 > r0
    assert topo.revision > r1

    # Anchor toggles and write-back are not structural edits.
    r2 = topo.revision
    topo.set_fixed(0, True)
    topo.update_positions(np.array([1]), np.array([[5.0, 0.0, 0.0]]))
    assert topo.revision == r2
    assert np.array_equal(topo.nodes[1], [5.0, 0.0, 0.0])


def test_sync_group_lengths_reports_changes():
    topo = Topology()
    e = topo.add_element(0, 1)
    g = topo.add_group("g", [e])
    assert topo.sync_group_lengths() == []

    g.group_length = 1.5
    changed = topo.sync_group_lengths()

    assert changed == [g]
    assert topo.element(e).rope_length == 1.5
    assert topo.sync_group_lengths() == []


def test_restore_element_keeps_id():
    topo = Topology()
    topo.restore_element(Element(node_a=0, node_b=1, id=7))

    assert topo.add_element(1, 2) == 8
    with pytest.raises(ValueError):
        topo.restore_element(Element(node_a=0, node_b=1, id=7))


def test_target_length():
    assert Element(0, 1, rope_length=5.0).target_length() == 5.0
    assert Element(0, 1, rope_length=5.0).target_length(rope_offset=2.0) == 3.0
    assert Element(0, 1, rope_length=1.0).target_length(rope_offset=2.0) == 0.0
    assert Element(0, 1, rope_length=0.0, rest_length=4.0).target_length() == 4.0
