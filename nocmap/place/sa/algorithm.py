"""The main annealing algorithm loop."""

import logging

from collections import namedtuple

from enum import Enum

from nocmap.float_cmp import definitely_less_than
from nocmap.lcg import LCG

from nocmap.place.utils import \
    PlacementStatistics, initial_placement, is_trivial

from nocmap.place.sa.python_kernel import PythonKernel


"""
This logger is used by the annealing algorithm to indicate progress.
"""
logger = logging.getLogger(__name__)


class AnnealingSchedule(namedtuple("AnnealingSchedule",
                                   "initial_temperature cooling_ratio "
                                   "attempts_per_node_squared tolerance "
                                   "min_rounds min_accept max_free_rounds")):
    """The parameters of the annealing schedule.

    Parameters
    ----------
    initial_temperature : float
        The temperature of the first round.
    cooling_ratio : float
        The temperature is multiplied by this after every round.
    attempts_per_node_squared : int
        Each round attempts ``num_nodes**2 * attempts_per_node_squared``
        swaps.
    tolerance : float
        The relative cost change between consecutive rounds below which the
        cost is considered stable.
    min_rounds : int
        The anneal cannot freeze until more than this many rounds have been
        cooled.
    min_accept : float
        The acceptance ratio below which the anneal is considered frozen.
    max_free_rounds : int
        After this many consecutive rounds in which every accepted swap left
        the cost unchanged the anneal is considered frozen regardless of
        the acceptance ratio.
    """

    def __new__(cls, initial_temperature=100.0, cooling_ratio=0.9,
                attempts_per_node_squared=100, tolerance=1.0, min_rounds=5,
                min_accept=0.001, max_free_rounds=10):
        return super(AnnealingSchedule, cls).__new__(
            cls, initial_temperature, cooling_ratio,
            attempts_per_node_squared, tolerance, min_rounds, min_accept,
            max_free_rounds)


class AnnealingState(Enum):
    """States of an anneal."""

    init = 0
    """Cores are being given an initial placement."""

    cooling = 1
    """Rounds of swaps are being made at decreasing temperatures."""

    frozen = 2
    """The anneal has terminated."""


def _relative_change(old_cost, new_cost):
    """Magnitude of the change from old_cost to new_cost relative to
    old_cost.
    """
    if old_cost == 0.0:
        return 0.0 if new_cost == 0.0 else float("inf")
    return abs(old_cost - new_cost) / old_cost


def place(assignment, cost_model, random=None,
          schedule=AnnealingSchedule(), on_temperature_change=None,
          kernel=PythonKernel, kernel_kwargs={}):
    """A Simulated Annealing based placement algorithm.

    Starting from a random initial placement, the algorithm repeatedly swaps
    the contents of two randomly chosen nodes, keeping swaps which reduce the
    cost and keeping swaps which increase the cost with a probability
    ``exp(-delta / temperature)`` where ``delta`` is the percentage cost
    increase. Swaps are attempted in rounds of ``num_nodes**2 *
    attempts_per_node_squared`` at a fixed temperature and the temperature is
    reduced geometrically between rounds.

    The anneal freezes after a round when all of the following hold:

    * The relative cost change over each of the last two rounds is below
      the schedule's tolerance.
    * More than ``min_rounds`` rounds have been cooled.
    * The acceptance ratio of the round is below ``min_accept`` or the last
      ``max_free_rounds`` rounds only accepted swaps which left the cost
      unchanged.

    This algorithm produces INFO level logging information describing the
    progress made by the algorithm.

    Parameters
    ----------
    assignment : :py:class:`~nocmap.assignment.Assignment`
        Updated in place. Any cores already placed are used as the starting
        point, unplaced cores are placed randomly.
    cost_model : :py:class:`~nocmap.cost.CostModel`
    random : :py:class:`~nocmap.lcg.LCG`
        Defaults to a time-seeded generator. For results to be
        deterministic, supply a generator with a fixed seed.
    schedule : :py:class:`AnnealingSchedule`
    on_temperature_change : callback_function or None
        An (optional) callback function which is called after every round.
        This callback can be used to provide status updates.

        The callback function is passed the following arguments:

        * ``iteration_count``: the number of swaps the placer has
          attempted (integer)
        * ``assignment``: a copy of the current assignment.
        * ``cost``: the cost of the current assignment. (float)
        * ``acceptance_rate``: the proportion of swaps which were kept in
          the last round. (float between 0.0 and 1.0)
        * ``temperature``: the temperature of the last round. (float)

        If the callback returns False, the anneal is terminated immediately
        and the current solution is kept.
    kernel : :py:class:`~nocmap.place.sa.kernel.Kernel`
        A simulated annealing placement kernel.
    kernel_kwargs : dict
        Optional kernel-specific keyword arguments to pass to the kernel
        constructor.

    Returns
    -------
    :py:class:`~nocmap.place.utils.PlacementStatistics`
    """
    if random is None:
        random = LCG()

    state = AnnealingState.init
    logger.debug("Anneal state: %s", state.name)
    initial_placement(assignment, random)

    if is_trivial(assignment):
        logger.info("Placement has trivial solution. SA not used.")
        return PlacementStatistics(cost_model(assignment))

    k = kernel(assignment, cost_model, random, **kernel_kwargs)
    num_steps = (assignment.num_nodes ** 2 *
                 schedule.attempts_per_node_squared)

    temperature = schedule.initial_temperature
    current_cost = k.cost
    cost2 = cost3 = current_cost
    round_count = 0
    free_rounds = 0
    iteration_count = 0
    accept_ratios = []

    logger.info("Initial placement cost: %f", current_cost)

    state = AnnealingState.cooling
    logger.debug("Anneal state: %s", state.name)
    while state is AnnealingState.cooling:
        round_temperature = temperature
        num_accepted, num_free, current_cost = k.run_steps(num_steps,
                                                           temperature)
        iteration_count += num_steps

        # The ratio of accepted-to-not-accepted changes
        r_accept = num_accepted / float(num_steps)
        accept_ratios.append(r_accept)

        # Count the consecutive rounds in which nothing but cost-neutral
        # swaps were accepted.
        if num_free == num_accepted:
            free_rounds += 1
        else:
            free_rounds = 0
        stuck = free_rounds >= schedule.max_free_rounds

        logger.info("Round: %d, "
                    "Temp: %0.3f, "
                    "Cost: %f, "
                    "Kept: %0.1f%%.",
                    round_count, round_temperature, current_cost,
                    r_accept * 100)

        tol3 = _relative_change(cost3, cost2)
        tol2 = _relative_change(cost2, current_cost)
        logger.debug("tol3: %f, tol2: %f, rounds: %d, accept: %f, stuck: %s",
                     tol3, tol2, round_count, r_accept, stuck)

        if (definitely_less_than(tol3, schedule.tolerance) and
                definitely_less_than(tol2, schedule.tolerance) and
                round_count > schedule.min_rounds and
                (definitely_less_than(r_accept, schedule.min_accept) or
                 stuck)):
            if stuck:
                logger.info("The last %d rounds only accepted swaps with "
                            "no cost change.", free_rounds)
            state = AnnealingState.frozen
        else:
            # Remember the costs of the last two rounds for the next test
            cost3 = cost2
            cost2 = current_cost
            temperature *= schedule.cooling_ratio
            round_count += 1

        # Call the user callback before the next round, terminating if
        # requested.
        if on_temperature_change is not None:
            ret_val = on_temperature_change(iteration_count,
                                            k.get_assignment().copy(),
                                            current_cost,
                                            r_accept,
                                            round_temperature)
            if ret_val is False:
                state = AnnealingState.frozen

    logger.debug("Anneal state: %s", state.name)
    logger.info("Anneal terminated after %d iterations.", iteration_count)

    return PlacementStatistics(current_cost, accept_ratios)
