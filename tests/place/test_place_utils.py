import pytest

from nocmap.assignment import Assignment, EMPTY
from nocmap.lcg import LCG

from nocmap.place.utils import \
    PlacementStatistics, initial_placement, is_trivial


def test_placement_statistics():
    stats = PlacementStatistics(1.5)
    assert stats.cost == 1.5
    assert stats.accept_ratios == []

    stats = PlacementStatistics(2.0, (0.5, 0.25))
    assert stats.accept_ratios == [0.5, 0.25]


@pytest.mark.parametrize("num_cores,num_nodes", [(0, 4), (1, 1), (3, 4),
                                                 (9, 9), (5, 16)])
def test_initial_placement(num_cores, num_nodes):
    assignment = Assignment(num_cores, num_nodes)
    initial_placement(assignment, LCG(1))
    assert assignment.is_complete()
    assert len(set(assignment.core_to_node)) == num_cores


def test_initial_placement_deterministic():
    a = Assignment(5, 9)
    b = Assignment(5, 9)
    initial_placement(a, LCG(123))
    initial_placement(b, LCG(123))
    assert a == b


def test_initial_placement_keeps_placed_cores():
    assignment = Assignment(3, 4)
    assignment.place(1, 2)
    initial_placement(assignment, LCG(5))
    assert assignment.is_complete()
    assert assignment.node_of(1) == 2


@pytest.mark.parametrize("num_cores,trivial", [(0, True), (1, True),
                                               (2, False), (4, False)])
def test_is_trivial(num_cores, trivial):
    assert is_trivial(Assignment(num_cores, 4)) is trivial
