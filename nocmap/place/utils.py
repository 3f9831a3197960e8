"""Common utility functions for placement algorithms."""

from collections import namedtuple

from nocmap.assignment import EMPTY


class PlacementStatistics(namedtuple("PlacementStatistics",
                                     "cost accept_ratios")):
    """Summary returned by every placer.

    Parameters
    ----------
    cost : float
        The cost of the final assignment.
    accept_ratios : [float, ...]
        The proportion of moves accepted in each round of an iterative
        placer (empty for other placers).
    """

    def __new__(cls, cost, accept_ratios=()):
        return super(PlacementStatistics, cls).__new__(
            cls, cost, list(accept_ratios))


def initial_placement(assignment, random):
    """Place every unplaced core on a random unoccupied node.

    Nodes are drawn uniformly at random, redrawing until an unoccupied node
    is found, and cores are placed in order of core ID.

    Parameters
    ----------
    assignment : :py:class:`~nocmap.assignment.Assignment`
        Updated in place.
    random : :py:class:`~nocmap.lcg.LCG`
    """
    for core in range(assignment.num_cores):
        if assignment.node_of(core) != EMPTY:
            continue
        node = random.randint(0, assignment.num_nodes - 1)
        while assignment.core_at(node) != EMPTY:
            node = random.randint(0, assignment.num_nodes - 1)
        assignment.place(core, node)


def is_trivial(assignment):
    """True if no search can change the cost of the assignment: there are
    fewer than two cores to place.
    """
    return assignment.num_cores < 2
