import pytest

from nocmap.assignment import Assignment, EMPTY
from nocmap.exceptions import TooFewNodesError


def check_bijection(assignment):
    """Both directions of the assignment agree."""
    for core, node in enumerate(assignment.core_to_node):
        if node != EMPTY:
            assert assignment.node_to_core[node] == core
    for node, core in enumerate(assignment.node_to_core):
        if core != EMPTY:
            assert assignment.core_to_node[core] == node


def test_empty():
    a = Assignment(2, 4)
    assert a.num_cores == 2
    assert a.num_nodes == 4
    assert list(a.core_to_node) == [EMPTY, EMPTY]
    assert list(a.node_to_core) == [EMPTY] * 4
    assert not a.is_complete()

    # Zero cores is always complete
    assert Assignment(0, 4).is_complete()


def test_too_few_nodes():
    with pytest.raises(TooFewNodesError):
        Assignment(5, 4)


def test_place():
    a = Assignment(2, 4)
    a.place(0, 3)
    assert a.node_of(0) == 3
    assert a.core_at(3) == 0
    assert a.node_of(1) == EMPTY
    assert not a.is_complete()

    a.place(1, 0)
    assert a.is_complete()
    check_bijection(a)

    # Cannot double-place a core or double-book a node
    b = Assignment(2, 4)
    b.place(0, 1)
    with pytest.raises(ValueError):
        b.place(0, 2)
    with pytest.raises(ValueError):
        b.place(1, 1)

    with pytest.raises(IndexError):
        b.place(2, 0)
    with pytest.raises(IndexError):
        b.place(1, 4)


def test_views_are_read_only():
    a = Assignment(2, 4)
    with pytest.raises(ValueError):
        a.core_to_node[0] = 1
    with pytest.raises(ValueError):
        a.node_to_core[0] = 1


@pytest.mark.parametrize("node_a,node_b", [(0, 1), (1, 0),  # Both occupied
                                           (0, 2), (2, 0),  # One occupied
                                           (2, 3)])  # Neither occupied
def test_swap(node_a, node_b):
    a = Assignment(2, 4)
    a.apply([0, 1])
    original = a.copy()

    a.swap(node_a, node_b)
    check_bijection(a)
    assert a.core_at(node_a) == original.core_at(node_b)
    assert a.core_at(node_b) == original.core_at(node_a)

    # Swapping again restores the assignment
    a.swap(node_a, node_b)
    assert a == original


def test_apply():
    a = Assignment(3, 4)
    a.place(0, 0)
    a.apply([3, 1, 2])
    assert list(a.core_to_node) == [3, 1, 2]
    assert list(a.node_to_core) == [EMPTY, 1, 2, 0]
    check_bijection(a)


@pytest.mark.parametrize("nodes", [[0, 0, 1], [0, 1], [0, 1, 2, 3]])
def test_apply_invalid(nodes):
    a = Assignment(3, 4)
    with pytest.raises(ValueError):
        a.apply(nodes)


def test_apply_out_of_range():
    a = Assignment(2, 4)
    with pytest.raises(IndexError):
        a.apply([0, 4])


def test_clear():
    a = Assignment(2, 4)
    a.apply([2, 3])
    a.clear()
    assert list(a.core_to_node) == [EMPTY, EMPTY]
    assert list(a.node_to_core) == [EMPTY] * 4


def test_copy_and_equality():
    a = Assignment(2, 4)
    a.apply([2, 3])
    b = a.copy()
    assert a == b
    assert not (a != b)

    b.swap(2, 0)
    assert a != b
    assert a.node_of(0) == 2

    assert a != Assignment(2, 5)
    assert a != "not an assignment"
    assert repr(a) == "<Assignment [2, 3]>"
