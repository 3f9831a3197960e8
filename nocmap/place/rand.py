"""A trivial random placer."""

import logging

from nocmap.assignment import EMPTY
from nocmap.lcg import LCG

from nocmap.place.utils import PlacementStatistics


logger = logging.getLogger(__name__)


def place(assignment, cost_model, random=None):
    """A random placer.

    This algorithm places every unplaced core on a node chosen uniformly at
    random from the nodes still free (completely ignoring communication) and
    thus in the general case is likely to produce very poor quality
    placements. It exists primarily as a baseline comparison for placement
    quality.

    Parameters
    ----------
    assignment : :py:class:`~nocmap.assignment.Assignment`
        Updated in place.
    cost_model : :py:class:`~nocmap.cost.CostModel`
    random : :py:class:`~nocmap.lcg.LCG`
        Defaults to a time-seeded generator.

    Returns
    -------
    :py:class:`~nocmap.place.utils.PlacementStatistics`
    """
    if random is None:
        random = LCG()

    free_nodes = [node for node in range(assignment.num_nodes)
                  if assignment.core_at(node) == EMPTY]
    for core in range(assignment.num_cores):
        if assignment.node_of(core) == EMPTY:
            assignment.place(core, free_nodes.pop(
                random.randint(0, len(free_nodes) - 1)))

    cost = cost_model(assignment)
    logger.info("Random placement cost: %f", cost)
    return PlacementStatistics(cost)
