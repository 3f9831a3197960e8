"""A Python implementation of the Simulated Annealing kernel."""

import math

from nocmap.assignment import EMPTY
from nocmap.float_cmp import approximately_equal, definitely_less_than

from nocmap.place.sa.kernel import Kernel


class PythonKernel(Kernel):
    """An implementation of the Simulated Annealing placement algorithm kernel
    written in Python.

    Every swap attempt exchanges the contents of two randomly chosen nodes
    (at least one of which hosts a core), re-evaluates the full cost of the
    assignment and keeps or reverts the swap according to the Metropolis
    criterion applied to the percentage change in cost.
    """

    def __init__(self, assignment, cost_model, random):
        self.assignment = assignment
        self.cost_model = cost_model
        self.random = random
        self.cost = cost_model(assignment)

    def run_steps(self, num_steps, temperature):
        num_accepted = 0
        num_free = 0
        for _ in range(num_steps):
            swapped, free, self.cost = _step(self.assignment, self.cost,
                                             temperature, self.cost_model,
                                             self.random)
            num_accepted += 1 if swapped else 0
            num_free += 1 if free else 0

        return num_accepted, num_free, self.cost

    def get_assignment(self):
        return self.assignment


def _cost_change_percent(new_cost, cost):
    """Get the change from cost to new_cost as a percentage of cost.

    Changes within floating point tolerance of zero are reported as exactly
    zero.
    """
    if cost == 0.0:
        return 0.0 if new_cost == 0.0 else float("inf")

    delta = (new_cost - cost) / cost
    if approximately_equal(delta, 0.0):
        return 0.0
    else:
        return delta * 100.0


def _accept(delta, temperature, random):
    """The Metropolis acceptance test.

    Parameters
    ----------
    delta : float
        Percentage cost change caused by a move.
    temperature : float > 0.0
    random : :py:class:`~nocmap.lcg.LCG`
        Only consumed when the move increases the cost.

    Returns
    -------
    (accept, free)
        accept is True if the move should be kept. free is True if the move
        did not change the cost (such moves are always accepted).
    """
    if approximately_equal(delta, 0.0):
        return (True, True)
    elif definitely_less_than(delta, 0.0):
        return (True, False)

    probability = math.exp(-delta / temperature)
    r = random.random()
    return (definitely_less_than(r, probability) or
            approximately_equal(r, probability), False)


def _random_swap_nodes(assignment, random):
    """Choose two distinct nodes, at least one of which hosts a core."""
    num_nodes = assignment.num_nodes
    node_a = random.randint(0, num_nodes - 1)
    while True:
        node_b = random.randint(0, num_nodes - 1)
        if node_a != node_b and (assignment.core_at(node_a) != EMPTY or
                                 assignment.core_at(node_b) != EMPTY):
            return (node_a, node_b)


def _step(assignment, cost, temperature, cost_model, random):
    """Attempt a single swap operation: the kernel of the Simulated Annealing
    algorithm.

    Parameters
    ----------
    assignment : :py:class:`~nocmap.assignment.Assignment`
        Updated if the swap is kept.
    cost : float
        The cost of the assignment before the swap.
    temperature : float > 0.0
    cost_model : :py:class:`~nocmap.cost.CostModel`
    random : :py:class:`~nocmap.lcg.LCG`

    Returns
    -------
    (swapped, free, cost)
        swapped is True if the swap was kept, free is True if it was kept
        without changing the cost and cost is the cost of the resulting
        assignment.
    """
    node_a, node_b = _random_swap_nodes(assignment, random)
    assignment.swap(node_a, node_b)

    new_cost = cost_model(assignment)
    swapped, free = _accept(_cost_change_percent(new_cost, cost),
                            temperature, random)
    if swapped:
        return (True, free, new_cost)
    else:
        # Revert the swap
        assignment.swap(node_a, node_b)
        return (False, False, cost)
