"""An exhaustive search placer.

Every way of placing ``k`` cores onto ``n`` nodes (every k-permutation of
the node IDs) is evaluated in lexicographic order and the cheapest is kept.
The search space holds ``n! / (n - k)!`` assignments so this placer is only
practical for very small problems, where it gives a reference optimum
against which heuristic placers can be compared.
"""

import logging

from nocmap.float_cmp import definitely_greater_than, definitely_less_than

from nocmap.place.utils import PlacementStatistics


logger = logging.getLogger(__name__)


PROGRESS_STEP = 10
"""Percentage of the search space between progress messages."""


def count_mappings(num_nodes, num_cores):
    """Get the number of ways of placing num_cores cores onto num_nodes
    nodes, ``num_nodes! / (num_nodes - num_cores)!``.
    """
    count = 1
    for i in range(num_nodes - num_cores + 1, num_nodes + 1):
        count *= i
    return count


def first_permutation(n, k):
    """Get the lexicographically first k-permutation of range(n).

    Returns
    -------
    (permutation, available)
        ``permutation`` is the list ``[0, 1, ..., k-1]`` and ``available``
        is a list of n booleans, True for every value not in the
        permutation.
    """
    return (list(range(k)), [i >= k for i in range(n)])


def next_permutation(n, permutation, available):
    """Advance a k-permutation of range(n) to its lexicographic successor.

    Working back from the last position, the first position whose value can
    be increased to a larger value not used by any earlier position is
    increased to the smallest such value. All following positions are then
    reset to the smallest values still available.

    Parameters
    ----------
    n : int
    permutation : [int, ...]
        Updated in place.
    available : [bool, ...]
        Updated in place, kept consistent with permutation.

    Returns
    -------
    bool
        False if permutation was the last k-permutation (in which case the
        arguments are left in an unspecified state).
    """
    for i in range(len(permutation) - 1, -1, -1):
        available[permutation[i]] = True
        for j in range(permutation[i] + 1, n):
            if available[j]:
                permutation[i] = j
                available[j] = False

                # Refill the following positions in ascending order
                value = 0
                for l in range(i + 1, len(permutation)):
                    while not available[value]:
                        value += 1
                    permutation[l] = value
                    available[value] = False
                return True
    return False


def k_permutations(n, k):
    """Generate every k-permutation of range(n) in lexicographic order.

    Generates
    ---------
    (int, ...)
    """
    permutation, available = first_permutation(n, k)
    yield tuple(permutation)
    while next_permutation(n, permutation, available):
        yield tuple(permutation)


def place(assignment, cost_model, random=None, on_progress=None,
          callback_interval=1000):
    """An exhaustive search placer.

    Every complete assignment is evaluated and the first one found with
    the lowest cost is kept: a later assignment only replaces the best so
    far if it is definitely cheaper.

    This algorithm produces INFO level logging information every 10% of the
    search space.

    Parameters
    ----------
    assignment : :py:class:`~nocmap.assignment.Assignment`
        Replaced by the best assignment found.
    cost_model : :py:class:`~nocmap.cost.CostModel`
    random : ignored
        Accepted for compatibility with other placers; the search is
        deterministic.
    on_progress : callback_function or None
        An (optional) callback function which is called every
        ``callback_interval`` assignments. It is passed the number of
        assignments evaluated so far, the total number of assignments, a
        copy of the best assignment found so far and its cost. If it returns
        False the search is terminated and the best assignment found so far
        is kept.
    callback_interval : int

    Returns
    -------
    :py:class:`~nocmap.place.utils.PlacementStatistics`
    """
    num_nodes = assignment.num_nodes
    num_cores = assignment.num_cores
    total = count_mappings(num_nodes, num_cores)
    logger.info("This search space contains %d! / (%d - %d)! = %d possible "
                "mappings.", num_nodes, num_nodes, num_cores, total)

    best_cost = None
    best = None
    next_report = 0
    for counter, permutation in enumerate(
            k_permutations(num_nodes, num_cores), 1):
        assignment.apply(permutation)
        cost = cost_model(assignment)
        if best_cost is None or definitely_less_than(cost, best_cost):
            best_cost = cost
            best = permutation

        logger.debug("Mapping %d: %s, cost %f", counter, permutation, cost)
        progress = counter * 100.0 / total
        if definitely_greater_than(progress, next_report):
            logger.info("Generated mapping number %d (of %d possible "
                        "mappings). %0.1f%% of the search space explored.",
                        counter, total, progress)
            next_report += PROGRESS_STEP

        if (on_progress is not None and counter % callback_interval == 0):
            best_assignment = assignment.copy()
            best_assignment.apply(best)
            if on_progress(counter, total, best_assignment,
                           best_cost) is False:
                logger.info("Exhaustive search stopped after %d mappings.",
                            counter)
                break

    assignment.apply(best)
    logger.info("Best mapping cost: %f", best_cost)
    return PlacementStatistics(best_cost)
